import pandas as pd

from constants import (
    ACHIEVED_LABEL,
    MONTHS,
    NOT_ACHIEVED_LABEL,
    TARGET_LOGIC_CUMULATIVE,
)
from utils import unique_by_key


# ----------------------------- #
# 🧮 Perhitungan Capaian Kinerja
# ----------------------------- #
# Semua fungsi di sini murni: hanya mengolah data yang sudah diambil dari
# penyimpanan, tanpa I/O.

def unique_by_id(activities):
    return unique_by_key(activities)


def achievement_map(achievements):
    # Satu capaian per kegiatan (kemunculan pertama) untuk satu periode
    result = {}
    for ach in achievements:
        result.setdefault(ach.activity_id, ach)
    return result


def safe_percent(value, target):
    """value / target * 100 dibulatkan 1 desimal; 0 jika target <= 0."""
    if not target or target <= 0:
        return 0.0
    return round(value / target * 100, 1)


def achievement_percent(activity, achievement):
    if achievement is None:
        return 0.0
    return safe_percent(achievement.value, activity.target_value)


def is_achieved(percent):
    return percent >= 100


def radar_percent(activity, achievement):
    return min(achievement_percent(activity, achievement), 100.0)


def failed_activities(activities, achievements):
    """Kegiatan dengan capaian < 100% pada periode ini, termasuk yang belum diisi."""
    ach_by_id = achievement_map(achievements)
    return [
        a for a in unique_by_id(activities)
        if not is_achieved(achievement_percent(a, ach_by_id.get(a.id)))
    ]


def summarize(activities, achievements):
    activities = unique_by_id(activities)
    failed = failed_activities(activities, achievements)
    return {
        "total": len(activities),
        "achieved": len(activities) - len(failed),
        "not_achieved": len(failed),
    }


# ----------------------------- #
# 📅 Rekap Tahunan
# ----------------------------- #

def annual_values(activity_id, annual_achievements):
    """Nilai capaian per bulan (indeks 0-11); None jika bulan itu belum diisi."""
    values = [None] * 12
    for ach in unique_by_key(annual_achievements, key=lambda a: a.key):
        if ach.activity_id == activity_id and 0 <= ach.month < 12 and values[ach.month] is None:
            values[ach.month] = ach.value
    return values


def annual_rollup(activity, annual_achievements, month):
    """Total capaian bulan 0..month (bulan setelahnya diabaikan) terhadap target berjalan."""
    values = annual_values(activity.id, annual_achievements)[: month + 1]
    total = sum(v for v in values if v is not None)
    target_to_date = activity.target_value * (month + 1)
    return {
        "total": total,
        "annual_target": activity.target_value * 12,
        "target_to_date": target_to_date,
        "rolling_percent": safe_percent(total, target_to_date),
    }


def period_percent(activity, achievement, annual_achievements, month):
    # Statis: capaian bulan ini vs target bulanan.
    # Kumulatif: total capaian s.d. bulan ini vs target berjalan.
    if activity.target_logic == TARGET_LOGIC_CUMULATIVE:
        return annual_rollup(activity, annual_achievements, month)["rolling_percent"]
    return achievement_percent(activity, achievement)


def monthly_trend(activities, annual_achievements, month):
    """Rata-rata persentase capaian kluster untuk setiap bulan 0..month."""
    activities = unique_by_id(activities)
    per_activity = {a.id: annual_values(a.id, annual_achievements) for a in activities}
    trend = []
    for m in range(month + 1):
        if not activities:
            trend.append((MONTHS[m], 0.0))
            continue
        percents = [
            safe_percent(per_activity[a.id][m] or 0, a.target_value)
            for a in activities
        ]
        trend.append((MONTHS[m], round(sum(percents) / len(percents), 1)))
    return trend


# ----------------------------- #
# 📋 Tabel untuk Tampilan dan PDF
# ----------------------------- #

def build_monthly_frame(activities, achievements):
    ach_by_id = achievement_map(achievements)
    rows = []
    for a in unique_by_id(activities):
        ach = ach_by_id.get(a.id)
        percent = achievement_percent(a, ach)
        rows.append({
            "id": a.id,
            "Kegiatan": a.name,
            "Target": a.target_value,
            "Capaian": ach.value if ach else 0.0,
            "%": percent,
            "Status": ACHIEVED_LABEL if is_achieved(percent) else NOT_ACHIEVED_LABEL,
        })
    return pd.DataFrame(rows, columns=["id", "Kegiatan", "Target", "Capaian", "%", "Status"])


def build_annual_frame(activities, annual_achievements, month):
    label_to_date = f"Target s.d. {MONTHS[month]}"
    rows = []
    for a in unique_by_id(activities):
        rollup = annual_rollup(a, annual_achievements, month)
        rows.append({
            "id": a.id,
            "Kegiatan": a.name,
            "Target Tahunan": rollup["annual_target"],
            label_to_date: rollup["target_to_date"],
            "Capaian Kumulatif": rollup["total"],
            "%": rollup["rolling_percent"],
        })
    return pd.DataFrame(
        rows, columns=["id", "Kegiatan", "Target Tahunan", label_to_date, "Capaian Kumulatif", "%"]
    )


def build_pdca_frame(pdca_entries):
    rows = [
        {
            "Kegiatan": p.activity_name or p.activity_id,
            "Plan": p.plan,
            "Do": p.do,
            "Check": p.check,
            "Action": p.action,
        }
        for p in pdca_entries
    ]
    return pd.DataFrame(rows, columns=["Kegiatan", "Plan", "Do", "Check", "Action"])
