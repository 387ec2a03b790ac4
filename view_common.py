import logging

import streamlit as st

from constants import CLUSTER_BY_ID, CLUSTERS, DEFAULT_PAGE_SIZE, PAGE_SIZE_OPTIONS
from errors import MinilokError
from utils import FilterTag, accept_result, cached_result, page_range_label, paginate

logger = logging.getLogger(__name__)

DATA_KEY_PREFIX = "view_data:"


# ----------------------------- #
# 🏥 Pemilih Kluster
# ----------------------------- #
def cluster_selector(key):
    cluster_id = st.radio(
        "🏥 Pilih Kluster",
        [c.id for c in CLUSTERS],
        format_func=lambda cid: f"{CLUSTER_BY_ID[cid].label} - {CLUSTER_BY_ID[cid].name}",
        horizontal=True,
        key=key,
    )
    return CLUSTER_BY_ID[cluster_id]


def current_tag(cluster_key):
    return FilterTag(
        st.session_state.get(cluster_key),
        st.session_state.get("selected_month"),
        st.session_state.get("selected_year"),
    )


# ----------------------------- #
# 📥 Memuat Data dengan Penanda Filter
# ----------------------------- #
def load_cluster_data(view, store, cluster, month, year, cluster_key, annual=False):
    """Ambil kegiatan & capaian kluster untuk periode terpilih.

    Hasil disimpan di session_state bersama penanda filter yang memicunya;
    hasil yang penandanya sudah tidak cocok dengan filter aktif dibuang.
    """
    key = DATA_KEY_PREFIX + view
    tag = FilterTag(cluster.id, month, year)
    cached = cached_result(st.session_state, key, tag)
    if cached is not None:
        return cached

    try:
        data = {
            "activities": store.list_activities(cluster.id),
            "achievements": store.list_achievements(month, year, cluster.id),
            "annual": store.list_annual_achievements(year, cluster.id) if annual else [],
        }
    except MinilokError as e:
        st.error(f"❌ Gagal memuat data: {e}")
        st.stop()

    if not accept_result(st.session_state, key, tag, current_tag(cluster_key), data):
        logger.debug("Hasil %s untuk %s dibuang (filter sudah berubah)", view, tag)
    return data


def invalidate_data():
    for key in [k for k in st.session_state.keys() if str(k).startswith(DATA_KEY_PREFIX)]:
        del st.session_state[key]


# ----------------------------- #
# 📄 Paginasi
# ----------------------------- #
def page_size_selector(key, label="Tampilkan"):
    return st.selectbox(
        label,
        PAGE_SIZE_OPTIONS,
        index=PAGE_SIZE_OPTIONS.index(DEFAULT_PAGE_SIZE),
        format_func=lambda n: "Semua" if n is None else str(n),
        key=key,
    )


def paginated(items, key, page_size):
    """Tampilkan kontrol halaman jika item lebih banyak dari ukuran halaman."""
    if not page_size or len(items) <= page_size:
        return list(items)
    pages = -(-len(items) // page_size)
    page = st.number_input(f"Halaman (1-{pages})", min_value=1, max_value=pages, value=1, step=1, key=key)
    page_items, page, _ = paginate(items, page, page_size)
    st.caption(page_range_label(page, page_size, len(items)))
    return page_items
