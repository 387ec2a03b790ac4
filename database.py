import json
import logging
import random
import sqlite3
import string
import time
from abc import ABC, abstractmethod
from dataclasses import replace

from constants import CLUSTER_BY_ID, STORAGE_KEY, TARGET_LOGICS
from errors import (  # noqa: F401
    BackendError,
    MinilokError,
    NotFoundError,
    StorageCorruption,
    ValidationError,
)
from models import Achievement, Activity, PdcaEntry
from utils import unique_by_key

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "target_value", "target_logic")


def new_activity_id():
    # Berbasis waktu + sufiks acak, tidak perlu sequence global
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"act_{int(time.time() * 1000)}_{suffix}"


def validate_activity_input(name, cluster_id, target_value, target_logic):
    name = (name or "").strip()
    if not name:
        raise ValidationError("Nama kegiatan wajib diisi.")
    if cluster_id not in CLUSTER_BY_ID:
        raise ValidationError(f"Kluster '{cluster_id}' tidak dikenal.")
    if target_value is None:
        raise ValidationError("Target wajib diisi.")
    if target_logic not in TARGET_LOGICS:
        raise ValidationError(f"Pola data '{target_logic}' tidak dikenal.")
    return name, float(target_value)


def validate_unique_name(name, cluster_id, activities, exclude_id=None):
    # Nama kegiatan unik per kluster (tanpa membedakan huruf besar/kecil)
    for other in activities:
        if other.id != exclude_id and other.cluster_id == cluster_id and other.name.lower() == name.lower():
            raise ValidationError(f"Kegiatan '{other.name}' sudah ada di kluster ini.")


def validate_rename(updates):
    if "name" in updates and updates["name"] is not None:
        name = str(updates["name"]).strip()
        if not name:
            raise ValidationError("Nama kegiatan wajib diisi.")
        updates["name"] = name
    return updates


def validate_achievement_value(achievement):
    value = float(achievement.value)
    if value < 0:
        raise ValidationError("Nilai capaian tidak boleh negatif.")
    return value


# ----------------------------- #
# 📌 Kontrak Akses Data
# ----------------------------- #
class DataStore(ABC):
    """Kontrak akses data yang sama untuk penyimpanan lokal dan remote.

    View hanya bergantung pada kelas ini; implementasinya dipilih sekali
    saat aplikasi mulai (lihat ``create_store``).
    """

    @abstractmethod
    def list_activities(self, cluster_id=None):
        """Semua kegiatan (urut pembuatan), atau hanya milik ``cluster_id``."""

    @abstractmethod
    def create_activity(self, name, cluster_id, target_value, target_logic="static"):
        """Buat kegiatan baru; kembalikan kegiatan lama jika nama sama di kluster yang sama."""

    @abstractmethod
    def update_activity(self, activity_id, **fields):
        """Gabungkan field yang diberikan; ``NotFoundError`` jika id tidak ada."""

    @abstractmethod
    def delete_activity(self, activity_id):
        """Hapus kegiatan beserta seluruh capaian dan PDCA-nya."""

    @abstractmethod
    def list_achievements(self, month, year, cluster_id=None):
        pass

    @abstractmethod
    def save_achievement(self, achievement):
        """Upsert berdasarkan (activity_id, month, year)."""

    @abstractmethod
    def list_annual_achievements(self, year, cluster_id=None):
        pass

    @abstractmethod
    def get_pdca(self, activity_id, month, year):
        pass

    @abstractmethod
    def list_bulk_pdca(self, month, year, cluster_id=None):
        """PDCA satu periode, diperkaya dengan nama kegiatan."""

    @abstractmethod
    def save_pdca(self, entry):
        """Upsert berdasarkan (activity_id, month, year)."""

    def create_activities_bulk(self, names, cluster_id, target_value, target_logic="static"):
        # Dibuat satu per satu; pengecekan duplikat berlaku per nama
        return [
            self.create_activity(name, cluster_id, target_value, target_logic)
            for name in names
        ]


# ----------------------------- #
# 💾 Penyimpanan Lokal (SQLite key-value)
# ----------------------------- #
def _initial_data():
    return {"activities": [], "achievements": [], "pdca": []}


def _upsert(records, saved):
    # Ganti record dengan kunci (activity_id, month, year) yang sama, atau tambahkan
    if any(r.key == saved.key for r in records):
        return [saved if r.key == saved.key else r for r in records]
    return records + [saved]


def decode_dataset(raw):
    """Ubah dokumen JSON tersimpan menjadi model; ``StorageCorruption`` jika rusak."""
    try:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise TypeError("dokumen bukan objek JSON")
        return {
            "activities": [Activity.from_dict(a) for a in data.get("activities", [])],
            "achievements": [Achievement.from_dict(a) for a in data.get("achievements", [])],
            "pdca": [PdcaEntry.from_dict(p) for p in data.get("pdca", [])],
        }
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise StorageCorruption(f"Data lokal rusak: {e}") from e


def encode_dataset(data):
    return json.dumps({
        "activities": [a.to_dict() for a in data["activities"]],
        "achievements": [a.to_dict() for a in data["achievements"]],
        "pdca": [p.to_dict() for p in data["pdca"]],
    })


class LocalStore(DataStore):
    """Dataset lengkap sebagai satu dokumen JSON di tabel kv_store SQLite."""

    def __init__(self, db_path="minilok_data.db", storage_key=STORAGE_KEY):
        self.db_path = db_path
        self.storage_key = storage_key
        self._create_table()
        self.data = self._load()

    def _create_table(self):
        conn = sqlite3.connect(self.db_path)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)
        conn.commit()
        conn.close()

    def _load(self):
        conn = sqlite3.connect(self.db_path)
        row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (self.storage_key,)).fetchone()
        conn.close()
        if row is None:
            return _initial_data()
        try:
            return decode_dataset(row[0])
        except StorageCorruption as e:
            logger.warning("%s; memulai dengan dataset kosong", e)
            return _initial_data()

    def _save(self, data):
        try:
            conn = sqlite3.connect(self.db_path)
            try:
                conn.execute(
                    "INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)",
                    (self.storage_key, encode_dataset(data)),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error("Gagal menyimpan data lokal ke %s: %s", self.db_path, e)
            raise BackendError(f"Gagal menyimpan data lokal: {e}") from e

    def _commit(self, **changes):
        # Cache di memori hanya diganti setelah dokumen berhasil ditulis
        data = dict(self.data, **changes)
        self._save(data)
        self.data = data

    def _activity_ids(self, cluster_id=None):
        return {a.id for a in self.data["activities"] if cluster_id is None or a.cluster_id == cluster_id}

    def _require_activity(self, activity_id):
        if activity_id not in self._activity_ids():
            raise NotFoundError(f"Kegiatan '{activity_id}' tidak ditemukan.")

    # Kegiatan
    def list_activities(self, cluster_id=None):
        activities = [
            replace(a) for a in self.data["activities"]
            if cluster_id is None or a.cluster_id == cluster_id
        ]
        return unique_by_key(activities)

    def create_activity(self, name, cluster_id, target_value, target_logic="static"):
        name, target_value = validate_activity_input(name, cluster_id, target_value, target_logic)
        for existing in self.data["activities"]:
            if existing.cluster_id == cluster_id and existing.name.lower() == name.lower():
                logger.debug("Kegiatan '%s' sudah ada di %s", name, cluster_id)
                return replace(existing)

        activity = Activity(
            id=new_activity_id(),
            cluster_id=cluster_id,
            name=name,
            target_value=target_value,
            target_logic=target_logic,
        )
        self._commit(activities=self.data["activities"] + [activity])
        logger.debug("Kegiatan dibuat: %s", activity.id)
        return replace(activity)

    def update_activity(self, activity_id, **fields):
        updates = validate_rename({k: v for k, v in fields.items() if k in UPDATABLE_FIELDS})
        for activity in self.data["activities"]:
            if activity.id == activity_id:
                if updates.get("name") is not None:
                    validate_unique_name(updates["name"], activity.cluster_id, self.data["activities"], activity_id)
                updated = activity.merged(**updates)
                self._commit(activities=[updated if a.id == activity_id else a for a in self.data["activities"]])
                return replace(updated)
        raise NotFoundError(f"Kegiatan '{activity_id}' tidak ditemukan.")

    def delete_activity(self, activity_id):
        self._commit(
            activities=[a for a in self.data["activities"] if a.id != activity_id],
            achievements=[a for a in self.data["achievements"] if a.activity_id != activity_id],
            pdca=[p for p in self.data["pdca"] if p.activity_id != activity_id],
        )
        logger.debug("Kegiatan dihapus beserta capaian & PDCA: %s", activity_id)
        return True

    # Capaian
    def list_achievements(self, month, year, cluster_id=None):
        ids = self._activity_ids(cluster_id)
        return [
            replace(a) for a in self.data["achievements"]
            if a.activity_id in ids and a.month == int(month) and a.year == int(year)
        ]

    def save_achievement(self, achievement):
        self._require_activity(achievement.activity_id)
        saved = Achievement(
            activity_id=achievement.activity_id,
            month=int(achievement.month),
            year=int(achievement.year),
            value=validate_achievement_value(achievement),
        )
        self._commit(achievements=_upsert(self.data["achievements"], saved))
        return replace(saved)

    def list_annual_achievements(self, year, cluster_id=None):
        ids = self._activity_ids(cluster_id)
        return [
            replace(a) for a in self.data["achievements"]
            if a.activity_id in ids and a.year == int(year)
        ]

    # PDCA
    def get_pdca(self, activity_id, month, year):
        key = (activity_id, int(month), int(year))
        for entry in self.data["pdca"]:
            if entry.key == key:
                return replace(entry)
        return None

    def list_bulk_pdca(self, month, year, cluster_id=None):
        names = {
            a.id: a.name for a in self.data["activities"]
            if cluster_id is None or a.cluster_id == cluster_id
        }
        return [
            replace(p, activity_name=names[p.activity_id]) for p in self.data["pdca"]
            if p.activity_id in names and p.month == int(month) and p.year == int(year)
        ]

    def save_pdca(self, entry):
        self._require_activity(entry.activity_id)
        saved = replace(entry, month=int(entry.month), year=int(entry.year), activity_name=None)
        self._commit(pdca=_upsert(self.data["pdca"], saved))
        return replace(saved)


def create_store(settings):
    """Bangun satu instance penyimpanan sesuai pengaturan backend."""
    if settings.use_remote:
        from rest_store import RestStore

        if not settings.supabase_url or not settings.supabase_key:
            raise BackendError("URL dan key backend remote wajib diisi untuk mode remote.")
        logger.info("Memakai backend remote: %s", settings.supabase_url)
        return RestStore(settings.supabase_url, settings.supabase_key, timeout=settings.http_timeout)

    logger.info("Memakai penyimpanan lokal: %s", settings.db_path)
    return LocalStore(settings.db_path)
