import logging

import requests

from database import (
    DataStore,
    UPDATABLE_FIELDS,
    new_activity_id,
    validate_achievement_value,
    validate_activity_input,
    validate_rename,
    validate_unique_name,
)
from errors import BackendError, NotFoundError
from models import Achievement, Activity, PdcaEntry
from utils import unique_by_key

logger = logging.getLogger(__name__)

PERIOD_CONFLICT = "activity_id,month,year"


# ----------------------------- #
# 🌐 Penyimpanan Remote (PostgREST / Supabase)
# ----------------------------- #
class RestStore(DataStore):
    """Tabel activities, achievements dan pdca di database relasional remote.

    Setiap panggilan adalah satu request HTTP; kegagalan apa pun dinaikkan
    sebagai ``BackendError`` berisi pesan dari backend, tanpa retry.
    """

    def __init__(self, base_url, api_key, timeout=10.0, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        })

    def _request(self, method, table, params=None, payload=None, prefer=None):
        url = f"{self.base_url}/rest/v1/{table}"
        headers = {"Prefer": prefer} if prefer else {}
        try:
            response = self.session.request(
                method, url, params=params, json=payload, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error("%s %s gagal: %s", method, table, e)
            raise BackendError(str(e)) from e

        if not response.ok:
            message = _error_message(response)
            logger.error("%s %s -> %s: %s", method, table, response.status_code, message)
            raise BackendError(message, status_code=response.status_code)

        if not response.content:
            return []
        return response.json()

    # Kegiatan
    def list_activities(self, cluster_id=None):
        params = {"select": "*", "order": "created_at.asc"}
        if cluster_id:
            params["cluster_id"] = f"eq.{cluster_id}"
        rows = self._request("GET", "activities", params=params)
        return unique_by_key([Activity.from_row(r) for r in rows])

    def create_activity(self, name, cluster_id, target_value, target_logic="static"):
        name, target_value = validate_activity_input(name, cluster_id, target_value, target_logic)
        for existing in self.list_activities(cluster_id):
            if existing.name.lower() == name.lower():
                return existing

        activity = Activity(
            id=new_activity_id(),
            cluster_id=cluster_id,
            name=name,
            target_value=target_value,
            target_logic=target_logic,
        )
        rows = self._request("POST", "activities", payload=activity.to_row(), prefer="return=representation")
        logger.debug("Kegiatan dibuat: %s", activity.id)
        return Activity.from_row(rows[0]) if rows else activity

    def update_activity(self, activity_id, **fields):
        updates = validate_rename({k: v for k, v in fields.items() if k in UPDATABLE_FIELDS and v is not None})
        if "target_value" in updates:
            updates["target_value"] = float(updates["target_value"])
        params = {"id": f"eq.{activity_id}"}
        current = self._request("GET", "activities", params=dict(params, select="*"))
        if not current:
            raise NotFoundError(f"Kegiatan '{activity_id}' tidak ditemukan.")
        activity = Activity.from_row(current[0])
        if not updates:
            return activity

        # Nama unik per kluster, dicek sebelum PATCH
        if "name" in updates:
            validate_unique_name(updates["name"], activity.cluster_id, self.list_activities(activity.cluster_id), activity_id)
        rows = self._request("PATCH", "activities", params=params, payload=updates, prefer="return=representation")
        if not rows:
            raise NotFoundError(f"Kegiatan '{activity_id}' tidak ditemukan.")
        return Activity.from_row(rows[0])

    def delete_activity(self, activity_id):
        # Cascade eksplisit: data turunan dulu, lalu kegiatannya
        self._request("DELETE", "achievements", params={"activity_id": f"eq.{activity_id}"})
        self._request("DELETE", "pdca", params={"activity_id": f"eq.{activity_id}"})
        self._request("DELETE", "activities", params={"id": f"eq.{activity_id}"})
        logger.debug("Kegiatan dihapus beserta capaian & PDCA: %s", activity_id)
        return True

    # Capaian
    def _achievement_params(self, cluster_id, **filters):
        params = {"select": "*"}
        if cluster_id:
            params["select"] = "*,activities!inner(cluster_id)"
            params["activities.cluster_id"] = f"eq.{cluster_id}"
        for column, value in filters.items():
            params[column] = f"eq.{int(value)}"
        return params

    def list_achievements(self, month, year, cluster_id=None):
        rows = self._request("GET", "achievements", params=self._achievement_params(cluster_id, month=month, year=year))
        # Join dapat mengulang baris; ratakan sebelum dikembalikan
        return unique_by_key([Achievement.from_row(r) for r in rows], key=lambda a: a.key)

    def save_achievement(self, achievement):
        validate_achievement_value(achievement)
        rows = self._request(
            "POST",
            "achievements",
            params={"on_conflict": PERIOD_CONFLICT},
            payload=achievement.to_row(),
            prefer="resolution=merge-duplicates,return=representation",
        )
        return Achievement.from_row(rows[0]) if rows else achievement

    def list_annual_achievements(self, year, cluster_id=None):
        rows = self._request("GET", "achievements", params=self._achievement_params(cluster_id, year=year))
        return unique_by_key([Achievement.from_row(r) for r in rows], key=lambda a: a.key)

    # PDCA
    def get_pdca(self, activity_id, month, year):
        params = {
            "select": "*",
            "activity_id": f"eq.{activity_id}",
            "month": f"eq.{int(month)}",
            "year": f"eq.{int(year)}",
            "limit": 1,
        }
        rows = self._request("GET", "pdca", params=params)
        return PdcaEntry.from_row(rows[0]) if rows else None

    def list_bulk_pdca(self, month, year, cluster_id=None):
        params = {
            "select": "*,activities!inner(name,cluster_id)",
            "month": f"eq.{int(month)}",
            "year": f"eq.{int(year)}",
        }
        if cluster_id:
            params["activities.cluster_id"] = f"eq.{cluster_id}"
        rows = self._request("GET", "pdca", params=params)
        return unique_by_key([PdcaEntry.from_row(r) for r in rows], key=lambda p: p.key)

    def save_pdca(self, entry):
        rows = self._request(
            "POST",
            "pdca",
            params={"on_conflict": PERIOD_CONFLICT},
            payload=entry.to_row(),
            prefer="resolution=merge-duplicates,return=representation",
        )
        return PdcaEntry.from_row(rows[0]) if rows else entry


def _error_message(response):
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return body.get("message") or body.get("error") or str(body)
    return str(body)
