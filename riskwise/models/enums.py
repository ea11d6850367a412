# riskwise/models/enums.py
"""
Closed enumerations shared by scoring, sanitizing and storage.

Every value the domain accepts for a rating, category, source or control
type is declared here and nowhere else.
"""

from enum import Enum


class Likelihood(Enum):
    """How often a risk cause is expected to occur (ascending)."""

    HAMPIR_TIDAK_TERJADI = "Hampir Tidak Terjadi"
    JARANG = "Jarang"
    KADANG_KADANG = "Kadang-kadang"
    SERING = "Sering"
    HAMPIR_PASTI = "Hampir Pasti"


class Impact(Enum):
    """How severe the consequence is if a risk cause occurs (ascending)."""

    TIDAK_SIGNIFIKAN = "Tidak Signifikan"
    MINOR = "Minor"
    MODERAT = "Moderat"
    MAYOR = "Mayor"
    SANGAT_SIGNIFIKAN = "Sangat Signifikan"


class RiskLevel(Enum):
    """Categorical risk band derived from likelihood x impact."""

    SANGAT_RENDAH = "Sangat Rendah"
    RENDAH = "Rendah"
    SEDANG = "Sedang"
    TINGGI = "Tinggi"
    SANGAT_TINGGI = "Sangat Tinggi"
    NOT_AVAILABLE = "N/A"  # likelihood or impact not yet analyzed


class RiskSource(Enum):
    """Where a risk cause originates."""

    INTERNAL = "Internal"
    EKSTERNAL = "Eksternal"


class ControlMeasureType(Enum):
    """Control measure types, keyed by their short code."""

    PREVENTIVE = "Prv"
    RISK_MITIGATING = "RM"
    CORRECTIVE = "Crr"

    @property
    def label(self) -> str:
        """Indonesian display name of the control type."""
        return _CONTROL_TYPE_LABELS[self]


_CONTROL_TYPE_LABELS = {
    ControlMeasureType.PREVENTIVE: "Preventif",
    ControlMeasureType.RISK_MITIGATING: "Mitigasi Risiko",
    ControlMeasureType.CORRECTIVE: "Korektif",
}


class RiskCategory(Enum):
    """Fixed list of potential-risk categories."""

    KEBIJAKAN = "Kebijakan"
    HUKUM = "Hukum"
    REPUTASI = "Reputasi"
    KEPATUHAN = "Kepatuhan"
    KEUANGAN = "Keuangan"
    FRAUD = "Fraud"
    OPERASIONAL = "Operasional"


class MonitoringStatus(Enum):
    """Lifecycle of a monitoring session."""

    AKTIF = "Aktif"
    SELESAI = "Selesai"
    DIBATALKAN = "Dibatalkan"


class MonitoringFrequency(Enum):
    """How often the UPR runs monitoring; sets the default session window."""

    BULANAN = "Bulanan"
    TRIWULANAN = "Triwulanan"
    SEMESTERAN = "Semesteran"
    TAHUNAN = "Tahunan"


class EntityKind(Enum):
    """Record kinds held by a RecordStore (values double as table names)."""

    GOAL = "goals"
    POTENTIAL_RISK = "potential_risks"
    RISK_CAUSE = "risk_causes"
    CONTROL_MEASURE = "control_measures"
    MONITORING_SESSION = "monitoring_sessions"
    RISK_EXPOSURE = "risk_exposures"


def enum_values(enum_cls: type[Enum]) -> list[str]:
    """Return the declared string values of an enumeration, in order."""
    return [member.value for member in enum_cls]


def member_or_none(enum_cls: type[Enum], value: object) -> Enum | None:
    """
    Look up an enum member by its exact value, or by the member itself.

    Returns None for anything outside the declared set instead of raising.
    """
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return None
