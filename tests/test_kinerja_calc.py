import pytest

from kinerja_calc import (
    achievement_map,
    achievement_percent,
    annual_rollup,
    annual_values,
    build_annual_frame,
    build_monthly_frame,
    build_pdca_frame,
    failed_activities,
    is_achieved,
    monthly_trend,
    period_percent,
    radar_percent,
    safe_percent,
    summarize,
)
from models import Achievement, Activity, PdcaEntry


@pytest.fixture
def imunisasi():
    return Activity("act_1", "k2", "Imunisasi", 100.0)


@pytest.fixture
def lansia():
    return Activity("act_2", "k2", "Senam Lansia", 4.0, "cumulative")


def test_imunisasi_over_target_in_january(imunisasi):
    ach = Achievement("act_1", 0, 2025, 120)

    percent = achievement_percent(imunisasi, ach)

    assert percent == 120.0
    assert is_achieved(percent)
    assert failed_activities([imunisasi], [ach]) == []


def test_month_without_achievement_is_failed(imunisasi):
    january = [Achievement("act_1", 0, 2025, 120)]
    february = []

    assert achievement_percent(imunisasi, achievement_map(february).get("act_1")) == 0.0
    assert failed_activities([imunisasi], february) == [imunisasi]
    assert failed_activities([imunisasi], january) == []


@pytest.mark.parametrize("value, target, expected", [
    (50, 0, 0.0),
    (50, -10, 0.0),
    (1, 3, 33.3),
    (2, 3, 66.7),
    (0, 100, 0.0),
])
def test_safe_percent(value, target, expected):
    assert safe_percent(value, target) == expected


def test_zero_target_is_never_achieved():
    activity = Activity("act_z", "k1", "Tanpa Target", 0.0)

    assert achievement_percent(activity, Achievement("act_z", 0, 2025, 10)) == 0.0
    assert failed_activities([activity], [Achievement("act_z", 0, 2025, 10)]) == [activity]


def test_pass_threshold_uses_rounded_percent():
    activity = Activity("act_r", "k1", "Pembulatan", 1000.0)

    assert is_achieved(achievement_percent(activity, Achievement("act_r", 0, 2025, 999.6)))
    assert not is_achieved(achievement_percent(activity, Achievement("act_r", 0, 2025, 999.4)))


def test_radar_percent_is_capped_at_100(imunisasi):
    assert radar_percent(imunisasi, Achievement("act_1", 0, 2025, 250)) == 100.0
    assert radar_percent(imunisasi, Achievement("act_1", 0, 2025, 40)) == 40.0


def test_summary_counts_unique_activities(imunisasi, lansia):
    achievements = [Achievement("act_1", 0, 2025, 100), Achievement("act_2", 0, 2025, 1)]

    summary = summarize([imunisasi, lansia, imunisasi], achievements)

    assert summary == {"total": 2, "achieved": 1, "not_achieved": 1}


def test_first_achievement_wins_for_duplicated_keys(imunisasi):
    achievements = [Achievement("act_1", 0, 2025, 10), Achievement("act_1", 0, 2025, 90)]

    assert achievement_map(achievements)["act_1"].value == 10


def test_annual_values_mark_missing_months():
    annual = [Achievement("act_1", 0, 2025, 5), Achievement("act_1", 2, 2025, 7), Achievement("act_9", 1, 2025, 3)]

    values = annual_values("act_1", annual)

    assert values[:4] == [5, None, 7, None]
    assert len(values) == 12


def test_annual_rollup_excludes_later_months(lansia):
    annual = [
        Achievement("act_2", 0, 2025, 4),
        Achievement("act_2", 1, 2025, 2),
        Achievement("act_2", 2, 2025, 100),
    ]

    rollup = annual_rollup(lansia, annual, 1)

    assert rollup == {
        "total": 6,
        "annual_target": 48.0,
        "target_to_date": 8.0,
        "rolling_percent": 75.0,
    }


def test_period_percent_depends_on_target_logic(imunisasi, lansia):
    annual = [
        Achievement("act_1", 0, 2025, 100),
        Achievement("act_1", 1, 2025, 50),
        Achievement("act_2", 0, 2025, 4),
        Achievement("act_2", 1, 2025, 4),
    ]
    monthly = achievement_map([a for a in annual if a.month == 1])

    # statis: hanya bulan ini
    assert period_percent(imunisasi, monthly["act_1"], annual, 1) == 50.0
    # kumulatif: 8 dari target berjalan 8
    assert period_percent(lansia, monthly["act_2"], annual, 1) == 100.0


def test_monthly_trend_averages_each_month(imunisasi, lansia):
    annual = [
        Achievement("act_1", 0, 2025, 100),
        Achievement("act_2", 0, 2025, 2),
        Achievement("act_1", 1, 2025, 80),
    ]

    trend = monthly_trend([imunisasi, lansia], annual, 2)

    assert trend == [("Januari", 75.0), ("Februari", 40.0), ("Maret", 0.0)]


def test_monthly_trend_without_activities():
    assert monthly_trend([], [], 1) == [("Januari", 0.0), ("Februari", 0.0)]


def test_monthly_frame(imunisasi, lansia):
    df = build_monthly_frame([imunisasi, lansia], [Achievement("act_1", 0, 2025, 120)])

    assert df.columns.tolist() == ["id", "Kegiatan", "Target", "Capaian", "%", "Status"]
    assert df["Status"].tolist() == ["Tercapai", "Tidak Tercapai"]
    assert df["%"].tolist() == [120.0, 0.0]
    assert df["Capaian"].tolist() == [120, 0.0]


def test_annual_frame_labels_target_to_date(lansia):
    df = build_annual_frame([lansia], [Achievement("act_2", 0, 2025, 4)], 2)

    assert "Target s.d. Maret" in df.columns
    row = df.iloc[0]
    assert row["Target Tahunan"] == 48.0
    assert row["Target s.d. Maret"] == 12.0
    assert row["%"] == 33.3


def test_pdca_frame_falls_back_to_activity_id():
    entries = [
        PdcaEntry("act_1", 0, 2025, plan="P", activity_name="Imunisasi"),
        PdcaEntry("act_2", 0, 2025, action="A"),
    ]

    df = build_pdca_frame(entries)

    assert df["Kegiatan"].tolist() == ["Imunisasi", "act_2"]
    assert df.iloc[1]["Action"] == "A"
