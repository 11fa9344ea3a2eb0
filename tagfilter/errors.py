from __future__ import annotations


class TagFilterError(RuntimeError):
    pass


class CatalogError(TagFilterError):
    """A label source could not be found, read or decoded."""


class SolverError(TagFilterError):
    def __init__(self, message: str, status: str = "") -> None:
        super().__init__(f"{message} (status={status})" if status else message)
        self.status = status
