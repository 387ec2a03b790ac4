import streamlit as st

from constants import MONTHS
from errors import MinilokError
from kinerja_calc import failed_activities
from models import PdcaEntry
from view_common import cluster_selector, load_cluster_data, page_size_selector, paginated

CLUSTER_KEY = "pdca_cluster"

PDCA_FIELDS = [
    ("plan", "PLAN (Perencanaan)", "Analisis penyebab dan rencana perbaikan..."),
    ("do", "DO (Pelaksanaan)", "Langkah-langkah yang diambil..."),
    ("check", "CHECK (Pemeriksaan)", "Hasil dari langkah perbaikan..."),
    ("action", "ACTION (Tindak Lanjut)", "Standardisasi langkah perbaikan..."),
]


def selection_key(cluster_id, month, year, page, page_size):
    # Pilihan ikut halaman aktif; berganti halaman berarti pilihan baru
    return f"pdca_select:{cluster_id}:{month}:{year}:{page_size or 'semua'}:{page}"


def _pdca_form(store, activity, month, year):
    try:
        existing = store.get_pdca(activity.id, month, year)
    except MinilokError as e:
        st.error(f"❌ Gagal memuat PDCA: {e}")
        return
    existing = existing or PdcaEntry(activity.id, month, year)

    st.markdown(f"#### 📝 {activity.name}")
    st.caption(f"Target: {activity.target_value:g} | Periode: {MONTHS[month]} {year}")

    with st.form(key=f"pdca_form:{activity.id}:{month}:{year}"):
        values = {
            field: st.text_area(label, value=getattr(existing, field), placeholder=placeholder, height=80)
            for field, label, placeholder in PDCA_FIELDS
        }
        submitted = st.form_submit_button("💾 Simpan PDCA")

    if submitted:
        try:
            store.save_pdca(PdcaEntry(activity.id, month, year, **values))
        except MinilokError as e:
            st.error(f"❌ Gagal menyimpan PDCA: {e}")
            return
        st.success("✅ PDCA berhasil disimpan!")


def show_pdca(store, month, year):
    cluster = cluster_selector(CLUSTER_KEY)
    data = load_cluster_data("pdca", store, cluster, month, year, CLUSTER_KEY)
    failed = failed_activities(data["activities"], data["achievements"])

    col_list, col_form = st.columns([1, 2])
    with col_list:
        st.subheader("⚠️ Kegiatan Tidak Tercapai")
        if not failed:
            st.info("Semua kegiatan tercapai atau data belum diisi.")
            return
        page_size = page_size_selector(f"pdca_page_size:{cluster.id}")
        page_key = f"pdca_page:{cluster.id}:{month}:{year}"
        page_items = paginated(failed, page_key, page_size)
        page = st.session_state.get(page_key, 1) if page_size else 1
        names = {a.id: a for a in page_items}
        selected_id = st.radio(
            "Pilih kegiatan untuk mengisi PDCA",
            list(names.keys()),
            index=None,
            format_func=lambda aid: f"🔴 {names[aid].name}",
            key=selection_key(cluster.id, month, year, page, page_size),
        )

    with col_form:
        if selected_id is None:
            st.info("👈 Pilih kegiatan di sebelah kiri untuk mengisi PDCA.")
        else:
            _pdca_form(store, names[selected_id], month, year)
