from pathlib import Path

from smartcapture.cloud.exceptions import CloudClientError

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"


def load_prompt_template(name: str, prompt_dir: Path | None = None) -> str:
    """Load a bundled prompt template by file name.

    Raises:
        CloudClientError: if the file cannot be read.
    """
    path = (prompt_dir or _DEFAULT_PROMPT_DIR) / name
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CloudClientError(f"Failed to load prompt template {name}: {exc}") from exc
