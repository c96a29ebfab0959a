import tempfile, yaml, json, os
from datetime import datetime, timezone
from typing import Union, Dict, Any, Optional
from pathlib import Path
from timelinegen.config import EditorConfig
from timelinegen.recovery import FileOperationError, FatalError, ImportFormatError
from timelinegen.logs import get_logger
from timelinegen.models import ExportEnvelope, TimelineDocument
from timelinegen.sanitize import sanitize

log = get_logger("io")

DATA_YAML = 0
DATA_JSON = 1

IMPORT_RETRY_MESSAGE = "Invalid JSON file. Please export from the app and try again."

def _cleanup(temp_path):
    if temp_path is not None and os.path.exists(temp_path):
        try:
            os.unlink(temp_path)
            log.debug(f"Cleaned up temporary file: {temp_path}")
        except OSError as cleanup_error:
            # Don't raise from cleanup, just log
            log.warning(f"Could not clean up temp file {temp_path}: {cleanup_error}")

def _create_dirs(file_path : Path):
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
    except (OSError, PermissionError) as e:
        error_msg = f"Cannot create directory {file_path.parent}: {e}"
        log.error(error_msg)
        raise FileOperationError(error_msg) from e

def data_type_for(file_path : Union[Path, str]) -> int:
    """YAML for ``.yml``/``.yaml`` files, JSON for everything else."""
    return DATA_YAML if Path(file_path).suffix.lower() in ('.yml', '.yaml') else DATA_JSON

def atomic_write(data_type : int, file_path : Union[Path, str], data : Dict[str, Any], create_dirs : bool = False):
    """
    Serialize and save data to a JSON or YAML file using atomic updates.
    """
    file_path = Path(file_path)
    temp_path = None

    try:
        # Create directories if requested and needed
        if create_dirs:
            _create_dirs(file_path)

        # Create temporary file in the same directory as target for atomicity
        with tempfile.NamedTemporaryFile(mode='w', encoding='utf-8', dir=file_path.parent, prefix=f".{file_path.name}.", suffix='.tmp', delete=False) as temp_file:
            temp_path = temp_file.name
            # Attempt serialization - this is where YAMLError occurs if data is bad
            if data_type == DATA_YAML:
                yaml.safe_dump(data, temp_file, default_flow_style=False, sort_keys=False, indent=2, allow_unicode=True)
            elif data_type == DATA_JSON:
                json.dump(data, temp_file, indent=2, ensure_ascii=False)
            else:
                raise FatalError("Unsupported Data Format")
            temp_file.flush()
            os.fsync(temp_file.fileno())

        # Atomic replace - this either completely succeeds or completely fails
        os.replace(temp_path, file_path)
        log.debug(f"Successfully saved file: {file_path}")
        return True

    except FatalError:
        _cleanup(temp_path)
        raise

    except (yaml.YAMLError, TypeError, ValueError) as e:
        _cleanup(temp_path)
        # FATAL ERROR: Data cannot be serialized
        error_msg = (f"Data serialization failed for {file_path}. "
                    f"In-memory data may be corrupt or contain non-serializable types: {e}")
        log.critical(error_msg)
        raise FatalError(error_msg) from e

    except (IOError, OSError, PermissionError) as e:
        _cleanup(temp_path)
        # RECOVERABLE ERROR: I/O issues
        error_msg = f"I/O error saving file {file_path}: {e}"
        log.error(error_msg)
        raise FileOperationError(error_msg) from e

def build_export_payload(document : TimelineDocument, config : Optional[EditorConfig] = None,
                         now : Optional[datetime] = None) -> Dict[str, Any]:
    """Wrap the live document, verbatim, in the export envelope."""
    config = config or EditorConfig()
    envelope = ExportEnvelope(
        app=config.app_name,
        format_version=config.format_version,
        exported_at=now or datetime.now(timezone.utc),
        document=document,
    )
    return envelope.to_dict()

def extract_model(parsed : Any) -> Any:
    """The document part of an import: ``model`` when present, else the whole payload."""
    if isinstance(parsed, dict) and parsed.get('model'):
        return parsed['model']
    return parsed

def parse_import_text(text : str, data_type : int = DATA_JSON) -> TimelineDocument:
    """
    Parse import text and sanitize its document.

    Raises:
        ImportFormatError: The text is not parsable at all.
    """
    try:
        if data_type == DATA_YAML:
            parsed = yaml.safe_load(text)
        else:
            parsed = json.loads(text)
    except (ValueError, yaml.YAMLError) as e:
        log.warning(f"Rejected unparsable import: {e}")
        raise ImportFormatError(IMPORT_RETRY_MESSAGE) from e
    return sanitize(extract_model(parsed))

def read_text(file_path : Union[Path, str]) -> str:
    file_path = Path(file_path)
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return f.read()
    except (IOError, OSError, UnicodeDecodeError) as e:
        # I/O errors are recoverable
        raise FileOperationError(f"Could not read the file {file_path}: {e}") from e

def load_document(file_path : Union[Path, str]) -> TimelineDocument:
    """
    Load an exported timeline file through the sanitizer.

    Raises:
        FileOperationError: The file cannot be read.
        ImportFormatError: The file content is not parsable.
    """
    file_path = Path(file_path)
    document = parse_import_text(read_text(file_path), data_type_for(file_path))
    log.info(f"Loaded {len(document.rows)} row(s) from {file_path}")
    return document

def save_document(file_path : Union[Path, str], document : TimelineDocument,
                  config : Optional[EditorConfig] = None, create_dirs : bool = False):
    payload = build_export_payload(document, config)
    return atomic_write(data_type_for(file_path), file_path, payload, create_dirs=create_dirs)

def make_export_filename(ext : str, now : Optional[datetime] = None) -> str:
    """``timeline_YYYY-MM-DD_HHMM.<ext>`` in local time."""
    stamp = (now or datetime.now()).strftime("%Y-%m-%d_%H%M")
    return f"timeline_{stamp}.{ext}"
