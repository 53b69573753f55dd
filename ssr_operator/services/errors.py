from __future__ import annotations

from typing import Iterable, Mapping


class SsrException(Exception):
    pass


class ProvisioningException(SsrException):
    pass


class DeletionException(SsrException):
    pass


class ConfigMapUpdateException(SsrException):
    pass


class ConfigurationException(SsrException):
    pass


class MissingParameterException(SsrException):
    def __init__(
        self,
        message: str,
        *,
        missing: Iterable[str] = (),
        resolution_errors: Mapping[str, Exception] | None = None,
    ) -> None:
        self.missing = tuple(missing)
        self.resolution_errors = dict(resolution_errors or {})
        super().__init__(self._build_message(message))

    def _build_message(self, message: str) -> str:
        if not self.missing:
            return message
        detail = f"{message} (missing={', '.join(self.missing)}"
        for key, exc in self.resolution_errors.items():
            detail += f", {key}: {exc}"
        return f"{detail})"


class MissingIdentityException(SsrException):
    def __init__(self, message: str, *, missing: Iterable[str] = ()) -> None:
        self.missing = tuple(missing)
        super().__init__(f"{message} (missing={', '.join(self.missing)})" if self.missing else message)
