"""Data models for recovery map (gain map) metadata."""

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional


class TransferFunction(IntEnum):
    """Transfer function of the reconstructed HDR image (XMP numeric code)."""
    LINEAR = 0
    HLG = 1
    PQ = 2
    SRGB = 3

    @classmethod
    def from_code(cls, code: int) -> 'TransferFunction':
        try:
            return cls(code)
        except ValueError:
            raise ValueError(f'unknown transfer function code: {code}') from None


@dataclass(frozen=True)
class Chromaticity:
    """CIE 1931 xy chromaticity coordinate."""
    x: float
    y: float


@dataclass(frozen=True)
class St2086Metadata:
    """SMPTE ST 2086 mastering display colour volume."""
    max_luminance: float
    min_luminance: float
    red_primary: Chromaticity
    green_primary: Chromaticity
    blue_primary: Chromaticity
    white_point: Chromaticity


@dataclass(frozen=True)
class Hdr10Metadata:
    """HDR10 static metadata, carried only for PQ content."""
    max_fall: int
    max_cll: int
    st2086: St2086Metadata


@dataclass(frozen=True)
class GainMapMetadata:
    """Parameters needed to rebuild an HDR image from base + recovery map.

    hdr10_metadata must be present exactly when the transfer function
    is PQ.
    """
    version: int
    range_scaling_factor: float
    transfer_function: TransferFunction
    hdr10_metadata: Optional[Hdr10Metadata] = None

    def __post_init__(self):
        tf = TransferFunction.from_code(int(self.transfer_function))
        object.__setattr__(self, 'transfer_function', tf)
        if tf == TransferFunction.PQ and self.hdr10_metadata is None:
            raise ValueError('PQ transfer function requires hdr10_metadata')
        if tf != TransferFunction.PQ and self.hdr10_metadata is not None:
            raise ValueError(
                f'hdr10_metadata is only valid for PQ, not {tf.name}')


@dataclass(frozen=True)
class XmpGainMapFields:
    """The subset of GainMapMetadata recoverable from XMP."""
    range_scaling_factor: float
    transfer_function: TransferFunction


@dataclass(frozen=True)
class ContainerItem:
    """One entry of the GContainer directory."""
    semantic: str  # "Primary" | "RecoveryMap"
    mime: str
    length: Optional[int] = None


@dataclass(frozen=True)
class ContainerDirectory:
    """Primary image followed by its recovery map."""
    items: List[ContainerItem]

    @classmethod
    def for_recovery_map(cls, secondary_image_length: int,
                         mime: str = 'image/jpeg') -> 'ContainerDirectory':
        return cls(items=[
            ContainerItem(semantic='Primary', mime=mime),
            ContainerItem(semantic='RecoveryMap', mime=mime,
                          length=secondary_image_length),
        ])
