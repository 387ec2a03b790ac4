import plotly.express as px
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from constants import MONTHS
from kinerja_calc import achievement_map, radar_percent, unique_by_id
from utils import truncate_label

COLOR_TARGET = "#cbd5e1"
COLOR_CAPAIAN = "#0d9488"
COLOR_HEADER = "#0f766e"
COLOR_FAILED = "#dc2626"


# Fungsi untuk membuat grafik batang Target vs Capaian
def create_bar_chart(activities, achievements, label_length=15, suffix="...", title="Target vs Capaian"):
    activities = unique_by_id(activities)
    ach_by_id = achievement_map(achievements)
    labels = [truncate_label(a.name, label_length, suffix) for a in activities]

    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=labels,
        y=[a.target_value for a in activities],
        name="Target",
        marker_color=COLOR_TARGET,
    ))
    fig.add_trace(go.Bar(
        x=labels,
        y=[ach_by_id[a.id].value if a.id in ach_by_id else 0 for a in activities],
        name="Capaian",
        marker_color=COLOR_CAPAIAN,
    ))
    fig.update_layout(
        title=title,
        barmode="group",
        xaxis_tickangle=45,
        margin={"r": 20, "t": 50, "l": 20, "b": 20},
    )
    return fig


# Fungsi untuk membuat grafik radar persentase capaian (maksimal 100%)
def create_radar_chart(activities, achievements, label_length=10, suffix="...", title="Persentase Capaian (%)"):
    activities = unique_by_id(activities)
    ach_by_id = achievement_map(achievements)
    labels = [truncate_label(a.name, label_length, suffix) for a in activities]
    values = [radar_percent(a, ach_by_id.get(a.id)) for a in activities]

    fig = go.Figure(go.Scatterpolar(
        r=values + values[:1],
        theta=labels + labels[:1],
        fill="toself",
        name="Persentase Capaian (%)",
        line_color=COLOR_CAPAIAN,
    ))
    fig.update_layout(
        title=title,
        polar={"radialaxis": {"range": [0, 100], "visible": True}},
        showlegend=False,
        margin={"r": 40, "t": 50, "l": 40, "b": 20},
    )
    return fig


# Fungsi untuk membuat grafik tren rata-rata capaian bulanan
def create_trend_chart(trend, title="Tren Capaian Rata-rata (%)"):
    fig = px.line(
        x=[label for label, _ in trend],
        y=[value for _, value in trend],
        markers=True,
        title=title,
        labels={"x": "Bulan", "y": "Rata-rata Capaian (%)"},
    )
    fig.update_traces(line_color=COLOR_CAPAIAN, line_shape="spline")
    fig.add_hline(y=100, line_dash="dash", line_color="Green", annotation_text="Target: 100%")
    fig.update_layout(margin={"r": 20, "t": 50, "l": 20, "b": 20})
    return fig


# ----------------------------- #
# 🖼️ Slide Presentasi per Kegiatan
# ----------------------------- #

def recent_months(month, count=5):
    start = max(0, month - count + 1)
    return list(range(start, month + 1))


def create_slide_figure(slide, cluster, month, year, index, total):
    """Satu halaman slide (landscape) untuk satu kegiatan sebagai satu figure."""
    activity = slide["activity"]
    pdca = slide["pdca"]
    percent = slide["percent"]
    status_color = COLOR_CAPAIAN if percent >= 100 else COLOR_FAILED

    fig = make_subplots(
        rows=2,
        cols=2,
        column_widths=[0.55, 0.45],
        row_heights=[0.35, 0.65],
        specs=[
            [{"type": "table"}, {"type": "xy"}],
            [{"type": "table"}, {"type": "polar"}],
        ],
        subplot_titles=("Data Capaian", "Target vs Capaian", "Analisis PDCA", "Tren Kinerja (%)"),
        vertical_spacing=0.12,
        horizontal_spacing=0.08,
    )

    fig.add_trace(go.Table(
        header={"values": ["Target", "Capaian", "Persentase"], "fill_color": COLOR_HEADER,
                "font": {"color": "white", "size": 14}},
        cells={"values": [[f"{activity.target_value:g}"], [f"{slide['value']:g}"], [f"{percent:.1f}%"]],
               "font": {"size": 14}, "height": 30},
    ), row=1, col=1)

    fig.add_trace(go.Table(
        columnwidth=[1, 4],
        header={"values": ["Tahap", "Uraian"], "fill_color": COLOR_HEADER,
                "font": {"color": "white", "size": 13}},
        cells={
            "values": [
                ["PLAN", "DO", "CHECK", "ACTION"],
                [pdca.plan or "-", pdca.do or "-", pdca.check or "-", pdca.action or "-"],
            ],
            "align": "left",
            "font": {"size": 12},
            "height": 40,
        },
    ), row=2, col=1)

    fig.add_trace(go.Bar(
        x=["Target", "Capaian"],
        y=[activity.target_value, slide["value"]],
        marker_color=[COLOR_TARGET, status_color],
        showlegend=False,
    ), row=1, col=2)

    trend_labels = [MONTHS[m] for m, _ in slide["trend"]]
    trend_values = [min(v, 100.0) for _, v in slide["trend"]]
    fig.add_trace(go.Scatterpolar(
        r=trend_values + trend_values[:1],
        theta=trend_labels + trend_labels[:1],
        fill="toself",
        line_color=COLOR_CAPAIAN,
        showlegend=False,
    ), row=2, col=2)

    fig.update_layout(
        title={
            "text": (
                f"<b>{activity.name}</b><br>"
                f"<sup>Kluster: {cluster.name} | Periode: {MONTHS[month]} {year}</sup>"
            ),
            "x": 0.02,
        },
        polar={"radialaxis": {"range": [0, 100], "showticklabels": False}},
        margin={"r": 30, "t": 110, "l": 30, "b": 60},
        paper_bgcolor="white",
    )
    fig.add_annotation(
        text=f"<b>{percent:.1f}%</b>", xref="paper", yref="paper", x=0.98, y=1.12,
        showarrow=False, font={"size": 28, "color": status_color},
    )
    fig.add_annotation(
        text="Laporan Kinerja Bulanan - Sistem Puskesmas Modern", xref="paper", yref="paper",
        x=0.0, y=-0.08, showarrow=False, xanchor="left", font={"size": 11, "color": "#64748b"},
    )
    fig.add_annotation(
        text=f"Halaman {index + 1} dari {total}", xref="paper", yref="paper",
        x=1.0, y=-0.08, showarrow=False, xanchor="right", font={"size": 11, "color": "#64748b"},
    )
    return fig
