import logging

import streamlit as st

from constants import ACHIEVED_LABEL, MONTHS
from errors import MinilokError
from kinerja_calc import achievement_map, build_monthly_frame, period_percent, summarize, unique_by_id
from report_pdf import collect_report_data, collect_slides, export_report_pdf, export_slides_pdf
from utils import report_filename, slide_filename
from view_common import cluster_selector, load_cluster_data

logger = logging.getLogger(__name__)

CLUSTER_KEY = "dashboard_cluster"


# Fungsi untuk mewarnai kolom status
def highlight_status(row):
    styles = [''] * len(row)
    if 'Status' in row.index:
        idx = row.index.get_loc('Status')
        if row['Status'] == ACHIEVED_LABEL:
            styles[idx] = 'background-color: #CCFBF1; color: #0F766E;'
        else:
            styles[idx] = 'background-color: #FF6666; color: white;'
    return styles


# ----------------------------- #
# 📥 Ekspor PDF
# ----------------------------- #
def _export_buttons(store, cluster, month, year, activities, selected_ids):
    col1, col2 = st.columns(2)
    export_key = f"export:{cluster.id}:{month}:{year}:{','.join(selected_ids)}"

    with col1:
        if st.button("📄 Cetak Laporan", key="btn_report", use_container_width=True):
            with st.spinner("🔄 Menyusun laporan PDF..."):
                try:
                    report = collect_report_data(store, cluster, month, year, selected_ids)
                    st.session_state["report_pdf"] = (export_key, export_report_pdf(report))
                except MinilokError as e:
                    st.session_state.pop("report_pdf", None)
                    st.error(f"❌ {e}")
        stored = st.session_state.get("report_pdf")
        if stored and stored[0] == export_key:
            st.download_button(
                label="📥 Download Laporan PDF",
                data=stored[1],
                file_name=report_filename(cluster, selected_ids, activities),
                mime="application/pdf",
                key="download_report",
            )

    with col2:
        if st.button("🖥️ Buat Slide Presentasi", key="btn_slides", use_container_width=True):
            with st.spinner("🔄 Menyusun slide..."):
                try:
                    report = collect_report_data(store, cluster, month, year, selected_ids)
                    pdf = export_slides_pdf(collect_slides(report), cluster, month, year)
                    st.session_state["slides_pdf"] = (export_key, pdf)
                    st.success("✅ Slide berhasil dibuat!")
                except MinilokError as e:
                    st.session_state.pop("slides_pdf", None)
                    st.error(f"❌ {e}")
        stored = st.session_state.get("slides_pdf")
        if stored and stored[0] == export_key:
            st.download_button(
                label="📥 Download Slide PDF",
                data=stored[1],
                file_name=slide_filename(cluster, selected_ids),
                mime="application/pdf",
                key="download_slides",
            )


def show_dashboard(store, month, year):
    cluster = cluster_selector(CLUSTER_KEY)
    data = load_cluster_data("dashboard", store, cluster, month, year, CLUSTER_KEY, annual=True)
    activities = unique_by_id(data["activities"])
    achievements = data["achievements"]

    # Score card
    summary = summarize(activities, achievements)
    cols = st.columns(3)
    cols[0].metric("📋 Total Kegiatan", summary["total"])
    cols[1].metric("✅ Tercapai", summary["achieved"])
    cols[2].metric("⚠️ Tidak Tercapai", summary["not_achieved"])

    st.subheader(f"📊 Capaian {cluster.name} - {MONTHS[month]} {year}")

    # Filter kegiatan untuk laporan (reset saat kluster/periode berganti)
    names = {a.id: a.name for a in activities}
    selected_ids = st.multiselect(
        "🔎 Pilih Program untuk Laporan (kosong = Semua Program)",
        list(names.keys()),
        format_func=lambda aid: names[aid],
        key=f"export_filter:{cluster.id}:{month}:{year}",
    )
    if selected_ids:
        st.caption(f"{len(selected_ids)} Program Dipilih")

    _export_buttons(store, cluster, month, year, activities, selected_ids)

    if not activities:
        st.info('ℹ️ Belum ada data kegiatan. Silakan tambah kegiatan di menu "Input Data".')
        return

    table_df = build_monthly_frame(activities, achievements)
    ach_by_id = achievement_map(achievements)
    table_df["% Pola Target"] = [
        period_percent(a, ach_by_id.get(a.id), data["annual"], month) for a in activities
    ]
    styled_df = table_df.drop(columns=["id"]).style.apply(highlight_status, axis=1).format({
        "Target": "{:g}",
        "Capaian": "{:g}",
        "%": "{:.1f}%",
        "% Pola Target": "{:.1f}%",
    })
    st.dataframe(styled_df, use_container_width=True, hide_index=True)
    st.caption(
        "Kolom % dihitung dari capaian bulan ini terhadap target bulanan. "
        "Kolom % Pola Target memakai target berjalan untuk kegiatan berpola kumulatif."
    )
