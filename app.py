import datetime
import logging

import streamlit as st

import analysis
import dashboard_kinerja
import data_entry
import pdca
from config import load_settings
from constants import APP_NAME, APP_SUBTITLE, APP_TAGLINE, MONTHS, YEAR_WINDOW
from database import create_store
from errors import MinilokError
from utils import year_options

# Konfigurasi halaman
st.set_page_config(page_title=f"{APP_NAME} - {APP_TAGLINE}", layout="wide")

logger = logging.getLogger(__name__)


# ----------------------------- #
# 💾 Satu Instance Penyimpanan untuk Seluruh View
# ----------------------------- #
@st.cache_resource
def get_store():
    settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return create_store(settings)


# ----------------------------- #
# 📅 Pemilih Periode
# ----------------------------- #
def period_selector():
    today = datetime.date.today()
    st.session_state.setdefault("selected_month", today.month - 1)
    st.session_state.setdefault("selected_year", today.year)

    col1, col2 = st.columns(2)
    with col1:
        month = st.selectbox(
            "🗓️ Bulan", list(range(12)), format_func=lambda m: MONTHS[m], key="selected_month"
        )
    with col2:
        year = st.selectbox(
            "📅 Tahun",
            year_options(today.year, YEAR_WINDOW, st.session_state["selected_year"]),
            key="selected_year",
        )
    with st.sidebar.expander("📅 Tahun lain"):
        st.number_input("Tahun", min_value=2000, max_value=2100, value=year, step=1, key="other_year")
        st.button("Pakai Tahun Ini", on_click=_use_other_year)
    return month, year


def _use_other_year():
    st.session_state["selected_year"] = int(st.session_state["other_year"])


# Fungsi utama aplikasi
def main():
    st.sidebar.title(f"🏥 {APP_NAME}")
    st.sidebar.caption(APP_TAGLINE)

    st.sidebar.header("🔍 Navigasi")
    menu_options = {
        "📊 Dashboard": dashboard_kinerja.show_dashboard,
        "➕ Input Data": data_entry.show_data_entry,
        "📈 Analisis & Tren": analysis.show_analysis,
        "📝 PDCA": pdca.show_pdca,
    }
    menu = st.sidebar.radio("Pilih Menu:", list(menu_options.keys()), index=0)

    try:
        store = get_store()
    except MinilokError as e:
        st.error(f"❌ Gagal menyiapkan penyimpanan data: {e}")
        return

    st.title(menu)
    st.caption(APP_SUBTITLE)
    month, year = period_selector()
    st.markdown("---")

    menu_options[menu](store, month, year)

    st.sidebar.markdown("---")
    st.sidebar.caption("Laporan Kinerja Bulanan - Sistem Puskesmas Modern")


if __name__ == "__main__":
    main()
