VERSION = "0.1.0"

# Version of the exported JSON envelope; bump when the document layout changes.
FORMAT_VERSION = 4

APP_NAME = "LRT Timeline Generator"
