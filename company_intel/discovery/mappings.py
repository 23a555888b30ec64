"""Static name -> ticker table used as the last discovery fallback."""

from types import MappingProxyType
from typing import NamedTuple, Optional


class ManualMapping(NamedTuple):
    ticker: str
    confidence: float
    exchange: Optional[str] = None


MANUAL_MAPPINGS = MappingProxyType({
    "Boeing": ManualMapping("BA", 0.99, "NYSE"),
    "Lockheed Martin": ManualMapping("LMT", 0.99, "NYSE"),
    "Northrop Grumman": ManualMapping("NOC", 0.99, "NYSE"),
    "Raytheon": ManualMapping("RTX", 0.99, "NYSE"),
    "General Dynamics": ManualMapping("GD", 0.99, "NYSE"),
    "Textron": ManualMapping("TXT", 0.99, "NYSE"),
    "Ametek": ManualMapping("AME", 0.99, "NYSE"),
    "Barnes Group": ManualMapping("B", 0.99, "NYSE"),
    "Parker Hannifin": ManualMapping("PH", 0.99, "NYSE"),
    "General Electric": ManualMapping("GE", 0.99, "NYSE"),
    "Honeywell": ManualMapping("HON", 0.99, "NYSE"),
    "Moog": ManualMapping("MOG.A", 0.99, "NYSE"),
    "Hexcel": ManualMapping("HXL", 0.99, "NYSE"),
    "Triumph Group": ManualMapping("TGI", 0.99, "NYSE"),
    "AeroVironment": ManualMapping("AVAV", 0.99, "NASDAQ"),
    "Anduril Industries": ManualMapping("ANDU", 0.95, "NYSE"),
    "Rolls Royce": ManualMapping("RR", 0.99, "LSE"),
    "Leonardo DRS": ManualMapping("DRS", 0.99, "NYSE"),
    "Rheinmetall": ManualMapping("RHM", 0.99, "XETRA"),
    "Fincantieri": ManualMapping("FCT", 0.99, "MIL"),
    "Siemens Energy": ManualMapping("ENR", 0.99, "XETRA"),
    "Albany International": ManualMapping("AIN", 0.99, "NYSE"),
})


def lookup_manual_mapping(company_name: str, mappings=MANUAL_MAPPINGS) -> Optional[ManualMapping]:
    """Substring match in either direction on lowercased names; first hit wins."""
    name = (company_name or "").lower().strip()
    if not name:
        return None

    for key, mapping in mappings.items():
        key_lower = key.lower()
        if key_lower in name or name in key_lower:
            return mapping
    return None
