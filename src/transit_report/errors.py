"""Exceptions raised by the report pipelines."""

from pathlib import Path


class SchemaError(ValueError):
    """An input file is missing columns a pipeline needs."""

    def __init__(self, path, missing):
        self.path = path
        self.missing = list(missing)
        super().__init__(f"{path}: missing column(s) {', '.join(self.missing)}")


class StageError(RuntimeError):
    """A pipeline stage failed; carries the stage name and the file it was working on."""

    def __init__(self, stage: str, path, cause: BaseException):
        self.stage = stage
        self.path = Path(path) if path is not None else None
        self.cause = cause
        super().__init__(f"{stage} failed for {path}: {cause}")
