"""
Ekspor laporan kinerja ke PDF.

Dua bentuk keluaran:

- Laporan (A4 portrait): tabel capaian bulanan, rekap tahunan, grafik yang
  dirasterisasi ke PNG dan diskalakan selebar halaman, tabel PDCA, kolom
  tanda tangan. Halaman dipecah otomatis oleh reportlab.
- Slide (A4 landscape): satu kegiatan per halaman; setiap slide disusun
  sebagai satu figure plotly lalu dirasterisasi menjadi satu gambar penuh.

Rasterisasi memakai ``plotly.io.to_image`` (kaleido) dan bisa diganti lewat
argumen ``render`` (dipakai di test).
"""

import datetime
import io
import logging
from xml.sax.saxutils import escape

from plotly.io import to_image
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from charts import create_bar_chart, create_radar_chart, create_slide_figure, recent_months
from constants import MONTHS
from errors import ExportError
from kinerja_calc import (
    achievement_map,
    achievement_percent,
    annual_values,
    build_annual_frame,
    build_monthly_frame,
    build_pdca_frame,
    safe_percent,
    unique_by_id,
)
from models import PdcaEntry

logger = logging.getLogger(__name__)

CHART_WIDTH_PX = 900
CHART_HEIGHT_PX = 450
SLIDE_WIDTH_PX = 1200
SLIDE_HEIGHT_PX = 848


def render_png(fig, width, height):
    return to_image(fig, format="png", width=width, height=height, scale=2)


# ----------------------------- #
# 📥 Pengumpulan Data Laporan
# ----------------------------- #

def collect_report_data(store, cluster, month, year, filter_ids=None):
    activities = store.list_activities(cluster.id)
    if filter_ids:
        activities = [a for a in activities if a.id in filter_ids]
    activities = unique_by_id(activities)
    activity_ids = {a.id for a in activities}

    achievements = store.list_achievements(month, year, cluster.id)
    annual = store.list_annual_achievements(year, cluster.id)
    pdca_list = [p for p in store.list_bulk_pdca(month, year, cluster.id) if p.activity_id in activity_ids]

    return {
        "cluster": cluster,
        "month": month,
        "year": year,
        "activities": activities,
        "achievements": achievements,
        "annual": annual,
        "pdca": pdca_list,
    }


def collect_slides(report):
    """Data satu slide per kegiatan dari data laporan (tanpa request tambahan)."""
    ach_by_id = achievement_map(report["achievements"])
    pdca_by_id = {p.activity_id: p for p in report["pdca"]}
    months = recent_months(report["month"])

    slides = []
    for activity in report["activities"]:
        ach = ach_by_id.get(activity.id)
        values = annual_values(activity.id, report["annual"])
        slides.append({
            "activity": activity,
            "value": ach.value if ach else 0.0,
            "percent": achievement_percent(activity, ach),
            "pdca": pdca_by_id.get(activity.id) or _empty_pdca(activity, report),
            "trend": [(m, safe_percent(values[m] or 0, activity.target_value)) for m in months],
        })
    return slides


def _empty_pdca(activity, report):
    return PdcaEntry(activity.id, report["month"], report["year"], "-", "-", "-", "-")


# ----------------------------- #
# 📄 Laporan Satu Dokumen
# ----------------------------- #

def _table_style():
    return TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor("#0f766e")),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('ALIGN', (1, 0), (-1, -1), 'CENTER'),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 6),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor("#f1f5f9")]),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor("#94a3b8")),
    ])


def _frame_to_table(df, styles, col_widths=None):
    cell_style = styles['BodyText']
    data = [df.columns.tolist()]
    for row in df.values.tolist():
        data.append([
            Paragraph(escape(str(v)), cell_style) if isinstance(v, str) else _format_number(v)
            for v in row
        ])
    table = Table(data, colWidths=col_widths, repeatRows=1)
    table.setStyle(_table_style())
    return table


def _format_number(value):
    if isinstance(value, float):
        return f"{value:,.1f}".replace(",", "X").replace(".", ",").replace("X", ".")
    return str(value)


def _chart_image(fig, render, width):
    png = render(fig, CHART_WIDTH_PX, CHART_HEIGHT_PX)
    height = width * CHART_HEIGHT_PX / CHART_WIDTH_PX
    return Image(io.BytesIO(png), width=width, height=height)


def export_report_pdf(report, render=render_png, printed_on=None):
    """Susun laporan bulanan satu kluster menjadi PDF (bytes)."""
    activities = report["activities"]
    if not activities:
        raise ExportError("Tidak ada kegiatan untuk dicetak. Pastikan data sudah termuat di Dashboard.")

    cluster = report["cluster"]
    month = report["month"]
    year = report["year"]
    printed_on = printed_on or datetime.date.today()

    try:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer, pagesize=A4, leftMargin=15 * mm, rightMargin=15 * mm, topMargin=15 * mm, bottomMargin=15 * mm
        )
        styles = getSampleStyleSheet()
        elements = []

        elements.append(Paragraph(f"LAPORAN CAPAIAN KINERJA - {escape(cluster.name.upper())}", styles['Title']))
        elements.append(Paragraph(f"{escape(cluster.label)} | Periode: {MONTHS[month]} {year}", styles['Normal']))
        elements.append(Spacer(1, 12))

        # Tabel capaian bulanan
        monthly_df = build_monthly_frame(activities, report["achievements"]).drop(columns=["id"])
        monthly_df.insert(0, "No", range(1, len(monthly_df) + 1))
        elements.append(Paragraph(f"Capaian Bulan {MONTHS[month]} {year}", styles['Heading2']))
        elements.append(_frame_to_table(monthly_df, styles, [10 * mm, 70 * mm, 22 * mm, 22 * mm, 20 * mm, 36 * mm]))
        elements.append(Spacer(1, 12))

        # Rekap tahunan s.d. bulan terpilih
        annual_df = build_annual_frame(activities, report["annual"], month).drop(columns=["id"])
        annual_df.insert(0, "No", range(1, len(annual_df) + 1))
        elements.append(Paragraph(f"Rekap Tahunan s.d. {MONTHS[month]} {year}", styles['Heading2']))
        elements.append(_frame_to_table(annual_df, styles, [10 * mm, 62 * mm, 26 * mm, 26 * mm, 36 * mm, 20 * mm]))
        elements.append(Spacer(1, 12))

        # Grafik sebagai gambar
        elements.append(Paragraph("Grafik Capaian", styles['Heading2']))
        elements.append(_chart_image(create_bar_chart(activities, report["achievements"], suffix=""), render, doc.width))
        if len(activities) >= 3:
            elements.append(Spacer(1, 6))
            elements.append(_chart_image(create_radar_chart(activities, report["achievements"], suffix=""), render, doc.width))
        elements.append(Spacer(1, 12))

        # PDCA
        elements.append(Paragraph("Analisis PDCA", styles['Heading2']))
        if report["pdca"]:
            pdca_df = build_pdca_frame(report["pdca"])
            elements.append(_frame_to_table(pdca_df, styles, [36 * mm, 36 * mm, 36 * mm, 36 * mm, 36 * mm]))
        else:
            elements.append(Paragraph("Belum ada data PDCA untuk periode ini.", styles['Italic']))
        elements.append(Spacer(1, 24))

        # Tanda tangan
        signing = Table(
            [
                ["", f"Dicetak pada: {printed_on.strftime('%d/%m/%Y')}"],
                ["", "Kepala Puskesmas"],
                ["", ""],
                ["", ""],
                ["", "NIP. ............................"],
            ],
            colWidths=[doc.width * 0.6, doc.width * 0.4],
        )
        signing.setStyle(TableStyle([('ALIGN', (1, 0), (1, -1), 'CENTER'), ('FONTSIZE', (0, 0), (-1, -1), 10)]))
        elements.append(signing)

        doc.build(elements)
    except ExportError:
        raise
    except Exception as e:
        logger.error("Gagal membuat laporan PDF: %s", e)
        raise ExportError(f"Gagal membuat laporan PDF: {e}") from e

    logger.info("Laporan PDF %s %s/%s: %d kegiatan", cluster.id, month, year, len(activities))
    return buffer.getvalue()


# ----------------------------- #
# 🖥️ Slide Presentasi
# ----------------------------- #

def export_slides_pdf(slides, cluster, month, year, render=render_png):
    """Satu halaman landscape A4 per slide, masing-masing satu gambar penuh."""
    if not slides:
        raise ExportError("Gagal: Tidak ada slide yang ditemukan. Pastikan data sudah termuat sempurna di Dashboard.")

    try:
        buffer = io.BytesIO()
        page_width, page_height = landscape(A4)
        pdf = canvas.Canvas(buffer, pagesize=landscape(A4))
        pdf.setTitle(f"Slide {cluster.name} {MONTHS[month]} {year}")
        for index, slide in enumerate(slides):
            fig = create_slide_figure(slide, cluster, month, year, index, len(slides))
            png = render(fig, SLIDE_WIDTH_PX, SLIDE_HEIGHT_PX)
            pdf.drawImage(ImageReader(io.BytesIO(png)), 0, 0, width=page_width, height=page_height)
            pdf.showPage()
        pdf.save()
    except Exception as e:
        logger.error("Gagal membuat slide PDF: %s", e)
        raise ExportError(f"Error saat membuat slide: {e}") from e

    logger.info("Slide PDF %s %s/%s: %d halaman", cluster.id, month, year, len(slides))
    return buffer.getvalue()
