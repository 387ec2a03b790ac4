from __future__ import annotations

# -----------------------------------------------------------------------------
# Model data MINILOK
# -----------------------------------------------------------------------------
# Kegiatan (Activity), Capaian (Achievement) dan catatan PDCA sebagai dataclass.
# Setiap model punya dua codec:
# - to_dict/from_dict : bentuk camelCase untuk dokumen JSON penyimpanan lokal
# - to_row/from_row   : bentuk snake_case untuk tabel di backend remote
# -----------------------------------------------------------------------------

from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class Cluster:
    id: str
    label: str
    name: str


@dataclass
class Activity:
    """Kegiatan/indikator yang dipantau dengan target bulanan."""

    id: str
    cluster_id: str
    name: str
    target_value: float
    target_logic: str = "static"

    def to_dict(self):
        return {
            "id": self.id,
            "clusterId": self.cluster_id,
            "name": self.name,
            "targetValue": self.target_value,
            "targetLogic": self.target_logic,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=str(data["id"]),
            cluster_id=str(data["clusterId"]),
            name=str(data["name"]),
            target_value=float(data["targetValue"]),
            target_logic=str(data.get("targetLogic") or "static"),
        )

    def to_row(self):
        return {
            "id": self.id,
            "cluster_id": self.cluster_id,
            "name": self.name,
            "target_value": self.target_value,
            "target_logic": self.target_logic,
        }

    @classmethod
    def from_row(cls, row):
        return cls(
            id=str(row["id"]),
            cluster_id=str(row["cluster_id"]),
            name=str(row["name"]),
            target_value=float(row["target_value"]),
            target_logic=str(row.get("target_logic") or "static"),
        )

    def merged(self, **fields) -> "Activity":
        # Hanya field yang diberikan (bukan None) yang ditimpa
        updates = {k: v for k, v in fields.items() if v is not None}
        if "target_value" in updates:
            updates["target_value"] = float(updates["target_value"])
        return replace(self, **updates)


@dataclass
class Achievement:
    """Satu nilai capaian kegiatan pada satu bulan (0-11) dan tahun."""

    activity_id: str
    month: int
    year: int
    value: float = 0.0

    @property
    def key(self):
        return (self.activity_id, self.month, self.year)

    def to_dict(self):
        return {
            "activityId": self.activity_id,
            "month": self.month,
            "year": self.year,
            "value": self.value,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            activity_id=str(data["activityId"]),
            month=int(data["month"]),
            year=int(data["year"]),
            value=float(data.get("value") or 0),
        )

    def to_row(self):
        return {
            "activity_id": self.activity_id,
            "month": self.month,
            "year": self.year,
            "value": self.value,
        }

    @classmethod
    def from_row(cls, row):
        return cls(
            activity_id=str(row["activity_id"]),
            month=int(row["month"]),
            year=int(row["year"]),
            value=float(row.get("value") or 0),
        )


@dataclass
class PdcaEntry:
    """Catatan Plan-Do-Check-Action untuk satu kegiatan pada satu periode."""

    activity_id: str
    month: int
    year: int
    plan: str = ""
    do: str = ""
    check: str = ""
    action: str = ""
    # Diisi hanya oleh list_bulk_pdca, tidak disimpan
    activity_name: Optional[str] = None

    @property
    def key(self):
        return (self.activity_id, self.month, self.year)

    def to_dict(self):
        return {
            "activityId": self.activity_id,
            "month": self.month,
            "year": self.year,
            "plan": self.plan,
            "do": self.do,
            "check": self.check,
            "action": self.action,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            activity_id=str(data["activityId"]),
            month=int(data["month"]),
            year=int(data["year"]),
            plan=data.get("plan") or "",
            do=data.get("do") or "",
            check=data.get("check") or "",
            action=data.get("action") or "",
        )

    def to_row(self):
        return {
            "activity_id": self.activity_id,
            "month": self.month,
            "year": self.year,
            "plan": self.plan,
            "do": self.do,
            "check": self.check,
            "action": self.action,
        }

    @classmethod
    def from_row(cls, row):
        activity = row.get("activities") or {}
        return cls(
            activity_id=str(row["activity_id"]),
            month=int(row["month"]),
            year=int(row["year"]),
            plan=row.get("plan") or "",
            do=row.get("do") or "",
            check=row.get("check") or "",
            action=row.get("action") or "",
            activity_name=activity.get("name"),
        )
