# enginetdms/io/config.py
from __future__ import annotations

from dataclasses import dataclass

from enginetdms.core.exceptions import InvalidConfig


_ERROR_POLICIES = ("raise", "recover")


@dataclass(frozen=True)
class ReaderConfig:
    """
    Reader configuration for one parse session.

    on_raw_data_error:
      - "raise"  : any error stops the parse and propagates.
      - "recover": raw-data errors keep every whole chunk already decoded and are
                   reported as a diagnostic for their segment; a structural error
                   ends the scan and becomes the trailing diagnostic.
    max_workers:
      Threads used to decode the channels of one chunk. 1 decodes sequentially.
    validate_version:
      Reject lead-ins whose version is not one of SUPPORTED_VERSIONS.
    """
    on_raw_data_error: str = "raise"
    max_workers: int = 1
    validate_version: bool = True

    def __post_init__(self) -> None:
        if self.on_raw_data_error not in _ERROR_POLICIES:
            raise InvalidConfig(
                f"on_raw_data_error must be one of {_ERROR_POLICIES}, got {self.on_raw_data_error!r}"
            )
        if not isinstance(self.max_workers, int) or self.max_workers < 1:
            raise InvalidConfig(f"max_workers must be a positive integer, got {self.max_workers!r}")

    @property
    def recover(self) -> bool:
        return self.on_raw_data_error == "recover"
