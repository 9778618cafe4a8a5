"""
Registry of radios supported by OpenRTX.

Provides a single source of truth for:
- Supported hardware (manufacturer, model name, USB identifiers)
- Flash parameters (memory size used for backups)
- Identification of connected radios from serial port metadata

Usage:
    from openrtx_companion.models import list_models, get_model, detect_model

    models = list_models()
    config = get_model("MD-UV3x0")
    config = detect_model(vid=0x0483, pid=0xDF11, product="MD-UV380")
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class RadioHW(Enum):
    """Radio hardware families that OpenRTX runs on."""
    MD3X0 = "MD3x0"
    MDUV3X0 = "MD-UV3x0"
    TTWRPLUS = "T-TWR Plus"


@dataclass(frozen=True)
class ModelConfig:
    """
    Definition of one supported radio.

    Attributes:
        hw: Hardware family
        manufacturer: Vendor name shown to the user
        usb_ids: (vid, pid) pairs the radio enumerates with
        product_patterns: Substrings matched against the USB product string
        memory_size: Bytes read by a full backup
        notes: Free-form remarks
    """
    hw: RadioHW
    manufacturer: str
    usb_ids: Tuple[Tuple[int, int], ...] = ()
    product_patterns: Tuple[str, ...] = ()
    memory_size: int = 0x100000
    notes: List[str] = field(default_factory=list, hash=False, compare=False)

    @property
    def name(self) -> str:
        return self.hw.value

    def matches(
        self,
        vid: Optional[int] = None,
        pid: Optional[int] = None,
        product: str = "",
    ) -> bool:
        """Check whether serial port metadata identifies this model."""
        if vid is not None and pid is not None and (vid, pid) in self.usb_ids:
            return True
        product_lower = (product or "").lower()
        return any(p.lower() in product_lower for p in self.product_patterns if product_lower)


_MODELS: Dict[str, ModelConfig] = {}


def _register(config: ModelConfig) -> ModelConfig:
    _MODELS[config.name] = config
    return config


_register(ModelConfig(
    hw=RadioHW.MD3X0,
    manufacturer="TYT",
    usb_ids=((0x0483, 0xDF11),),
    product_patterns=("MD-380", "MD-390", "MD380", "MD390"),
    memory_size=0x100000,
    notes=["STM32 DFU bootloader; power on with PTT and upper side button held"],
))

_register(ModelConfig(
    hw=RadioHW.MDUV3X0,
    manufacturer="TYT",
    usb_ids=((0x0483, 0xDF11),),
    product_patterns=("MD-UV380", "MD-UV390", "UV380", "UV390"),
    memory_size=0x100000,
    notes=["Shares the MD3x0 bootloader USB IDs; identified by product string"],
))

_register(ModelConfig(
    hw=RadioHW.TTWRPLUS,
    manufacturer="LilyGO",
    usb_ids=((0x303A, 0x1001),),
    product_patterns=("T-TWR", "TTWR"),
    memory_size=0x800000,
    notes=["ESP32-S3 USB serial/JTAG"],
))


def list_models() -> List[ModelConfig]:
    """Return all supported models in display order."""
    return [_MODELS[hw.value] for hw in (RadioHW.MD3X0, RadioHW.MDUV3X0, RadioHW.TTWRPLUS)]


def get_model(name: str) -> Optional[ModelConfig]:
    """Look up a model by name (case-insensitive)."""
    for key, config in _MODELS.items():
        if key.lower() == name.lower():
            return config
    return None


def detect_model(
    vid: Optional[int] = None,
    pid: Optional[int] = None,
    product: str = "",
) -> Optional[ModelConfig]:
    """
    Identify a model from serial port metadata.

    Product string matches are preferred since several models share a
    bootloader VID/PID; USB IDs alone only decide when unambiguous.
    """
    if product:
        for config in list_models():
            if config.matches(product=product):
                return config

    if vid is None or pid is None:
        return None

    candidates = [c for c in list_models() if (vid, pid) in c.usb_ids]
    if len(candidates) == 1:
        return candidates[0]
    return None
