"""
One-shot host capability detection.

The probe reads each signal through a ``CapabilitySource`` and substitutes a
documented default for anything the source cannot provide, so callers always
receive a fully populated ``Capabilities`` snapshot.
"""

from __future__ import annotations

import math
from typing import Callable, Optional, Protocol, TypeVar, TYPE_CHECKING

import psutil

from .data_models import Capabilities, ConnectionClass

if TYPE_CHECKING:
    from ..config import CapabilityOverrides
    from ..logger import ProductionLogger

T = TypeVar("T")

DEFAULT_LOGICAL_CORES = 4
DEFAULT_MEMORY_CEILING_GB = 4.0
DEFAULT_PIXEL_RATIO = 1.0
DEFAULT_GPU_DESCRIPTOR = "unknown"


def _positive_finite(value) -> bool:
    value = float(value)
    return math.isfinite(value) and value > 0


class CapabilitySource(Protocol):
    """Host introspection. Each reader returns ``None`` when unavailable."""

    def logical_cores(self) -> Optional[int]: ...

    def memory_ceiling_gb(self) -> Optional[float]: ...

    def pixel_ratio(self) -> Optional[float]: ...

    def connection_class(self) -> Optional[str]: ...

    def gpu_descriptor(self) -> Optional[str]: ...


class HostCapabilitySource:
    """Reads the local machine through psutil.

    A Python process has no display or network-information API, so pixel
    ratio, connection class and GPU descriptor only come from overrides.
    Overrides also win over the psutil readings when set.
    """

    def __init__(self, overrides: Optional["CapabilityOverrides"] = None):
        self.overrides = overrides

    def _override(self, name: str):
        return getattr(self.overrides, name, None) if self.overrides else None

    def logical_cores(self) -> Optional[int]:
        pinned = self._override("logical_cores")
        if pinned is not None:
            return pinned
        return psutil.cpu_count(logical=True)

    def memory_ceiling_gb(self) -> Optional[float]:
        pinned = self._override("memory_ceiling_gb")
        if pinned is not None:
            return pinned
        return psutil.virtual_memory().total / (1024 * 1024 * 1024)

    def pixel_ratio(self) -> Optional[float]:
        return self._override("pixel_ratio")

    def connection_class(self) -> Optional[str]:
        return self._override("connection_class")

    def gpu_descriptor(self) -> Optional[str]:
        return self._override("gpu_descriptor")


class StaticCapabilitySource:
    """Fixed capability values, for tests and embedding hosts."""

    def __init__(
        self,
        logical_cores: Optional[int] = None,
        memory_ceiling_gb: Optional[float] = None,
        pixel_ratio: Optional[float] = None,
        connection_class: Optional[str] = None,
        gpu_descriptor: Optional[str] = None,
    ):
        self._values = {
            "logical_cores": logical_cores,
            "memory_ceiling_gb": memory_ceiling_gb,
            "pixel_ratio": pixel_ratio,
            "connection_class": connection_class,
            "gpu_descriptor": gpu_descriptor,
        }

    def logical_cores(self) -> Optional[int]:
        return self._values["logical_cores"]

    def memory_ceiling_gb(self) -> Optional[float]:
        return self._values["memory_ceiling_gb"]

    def pixel_ratio(self) -> Optional[float]:
        return self._values["pixel_ratio"]

    def connection_class(self) -> Optional[str]:
        return self._values["connection_class"]

    def gpu_descriptor(self) -> Optional[str]:
        return self._values["gpu_descriptor"]


class CapabilityProbe:
    """Produces a ``Capabilities`` snapshot from a source, never raising."""

    def __init__(
        self,
        source: Optional[CapabilitySource] = None,
        logger: Optional["ProductionLogger"] = None,
    ):
        self.source = source or HostCapabilitySource()
        self.logger = logger

    def detect(self) -> Capabilities:
        cores = self._read("logical_cores", self.source.logical_cores, DEFAULT_LOGICAL_CORES,
                           valid=lambda v: int(v) >= 1)
        memory = self._read("memory_ceiling_gb", self.source.memory_ceiling_gb,
                            DEFAULT_MEMORY_CEILING_GB, valid=_positive_finite)
        pixel_ratio = self._read("pixel_ratio", self.source.pixel_ratio, DEFAULT_PIXEL_RATIO,
                                 valid=_positive_finite)
        connection = self._read("connection_class", self.source.connection_class,
                                ConnectionClass.UNKNOWN.value)
        gpu = self._read("gpu_descriptor", self.source.gpu_descriptor, DEFAULT_GPU_DESCRIPTOR,
                         valid=lambda v: bool(str(v).strip()))

        capabilities = Capabilities(
            logical_cores=int(cores),
            memory_ceiling_gb=float(memory),
            pixel_ratio=float(pixel_ratio),
            connection_class=ConnectionClass.parse(connection),
            gpu_descriptor=str(gpu),
        )

        if self.logger:
            self.logger.info("Device capabilities detected", **capabilities.to_dict())

        return capabilities

    def _read(
        self,
        name: str,
        reader: Callable[[], Optional[T]],
        default: T,
        valid: Optional[Callable[[T], bool]] = None,
    ) -> T:
        """Read one signal, falling back to ``default`` on any failure."""
        try:
            value = reader()
            if value is not None and (valid is None or valid(value)):
                return value
            reason = "unavailable" if value is None else f"invalid value {value!r}"
        except Exception as e:
            reason = f"{type(e).__name__}: {e}"

        if self.logger:
            self.logger.debug(
                "Capability signal fell back to default",
                signal=name,
                default=default,
                reason=reason,
            )
        return default
