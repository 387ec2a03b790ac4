import logging

import pandas as pd
import streamlit as st

from constants import MONTHS, TARGET_LOGIC_LABELS, TARGET_LOGIC_STATIC, TARGET_LOGICS
from errors import MinilokError, ValidationError
from kinerja_calc import achievement_map, unique_by_id
from models import Achievement
from utils import parse_bulk_names, parse_name, parse_target, parse_value
from view_common import cluster_selector, invalidate_data, load_cluster_data, page_size_selector, paginated

logger = logging.getLogger(__name__)

CLUSTER_KEY = "entry_cluster"


# ----------------------------- #
# ✏️ Tabel Input Capaian
# ----------------------------- #
def _save_changed_values(store, edited_df, stored_values, month, year):
    saved = 0
    for _, row in edited_df.iterrows():
        # Sel yang belum pernah diisi dilewati; sel yang dikosongkan menjadi 0
        if pd.isna(row["Capaian"]) and row["id"] not in stored_values:
            continue
        try:
            value = parse_value(row["Capaian"])
        except ValidationError as e:
            st.warning(f"⚠️ {row['Kegiatan']}: {e}")
            continue
        if stored_values.get(row["id"]) == value:
            continue
        store.save_achievement(Achievement(row["id"], month, year, value))
        saved += 1
    return saved


def _entry_table(store, cluster, activities, achievements, month, year):
    page_size = page_size_selector(f"entry_page_size:{cluster.id}")
    page_items = paginated(activities, f"entry_page:{cluster.id}:{month}:{year}", page_size)

    ach_by_id = achievement_map(achievements)
    stored_values = {a.id: ach_by_id[a.id].value for a in page_items if a.id in ach_by_id}
    base_df = pd.DataFrame(
        [
            {
                "id": a.id,
                "Kegiatan": a.name,
                "Target": a.target_value,
                "Pola": "Kumulatif" if a.target_logic != TARGET_LOGIC_STATIC else "Statis",
                "Capaian": stored_values.get(a.id),
            }
            for a in page_items
        ],
        columns=["id", "Kegiatan", "Target", "Pola", "Capaian"],
    )

    edited_df = st.data_editor(
        base_df,
        column_config={
            "id": None,
            "Capaian": st.column_config.NumberColumn(f"Capaian {MONTHS[month]} {year}", min_value=0.0),
        },
        disabled=["Kegiatan", "Target", "Pola"],
        num_rows="fixed",
        hide_index=True,
        use_container_width=True,
        key=f"entry_editor:{cluster.id}:{month}:{year}:{page_size}:{page_items[0].id if page_items else ''}",
    )

    # Nilai yang diubah langsung disimpan (upsert per bulan/tahun terpilih)
    try:
        saved = _save_changed_values(store, edited_df, stored_values, month, year)
    except MinilokError as e:
        st.error(f"❌ Gagal menyimpan capaian: {e}")
        return
    if saved:
        invalidate_data()
        st.toast(f"✅ {saved} capaian tersimpan")


# ----------------------------- #
# ➕ Kelola Kegiatan
# ----------------------------- #
def _add_activity_form(store, cluster):
    mode = st.radio("Mode", ["Satuan", "Bulk (Banyak)"], horizontal=True, key="entry_add_mode")
    bulk = mode != "Satuan"

    with st.form(key=f"add_activity_form:{mode}", clear_on_submit=True):
        if bulk:
            text = st.text_area(
                "Daftar Nama Kegiatan (Satu per baris)",
                placeholder="Cakupan Imunisasi A\nCakupan Imunisasi B\nCakupan Imunisasi C",
                height=140,
            )
        else:
            text = st.text_input("Nama Kegiatan", placeholder="Contoh: Cakupan Imunisasi Dasar")
        target = st.text_input("Target (Untuk Semua)" if bulk else "Target", placeholder="100")
        logic = st.selectbox("Pola Data", TARGET_LOGICS, format_func=lambda x: TARGET_LOGIC_LABELS[x])
        submitted = st.form_submit_button("💾 Simpan Kegiatan")

    if not submitted:
        return
    try:
        target_value = parse_target(target)
        if bulk:
            names = parse_bulk_names(text)
            store.create_activities_bulk(names, cluster.id, target_value, logic)
            st.success(f"✅ {len(names)} kegiatan berhasil disimpan ke {cluster.label}.")
        else:
            activity = store.create_activity(parse_name(text), cluster.id, target_value, logic)
            st.success(f"✅ Kegiatan '{activity.name}' tersimpan.")
    except ValidationError as e:
        st.warning(f"⚠️ {e}")
        return
    except MinilokError as e:
        st.error(f"❌ Gagal menyimpan kegiatan: {e}")
        return
    invalidate_data()
    st.rerun()


def _edit_activity_form(store, activities):
    if not activities:
        st.info("Belum ada kegiatan untuk diubah.")
        return
    names = {a.id: a for a in activities}
    activity_id = st.selectbox(
        "Pilih Kegiatan", list(names.keys()), format_func=lambda aid: names[aid].name, key="entry_edit_select"
    )
    activity = names[activity_id]

    with st.form(key=f"edit_activity_form:{activity_id}"):
        name = st.text_input("Nama Kegiatan", value=activity.name)
        target = st.text_input("Target", value=f"{activity.target_value:g}")
        logic = st.selectbox(
            "Pola Data",
            TARGET_LOGICS,
            index=TARGET_LOGICS.index(activity.target_logic) if activity.target_logic in TARGET_LOGICS else 0,
            format_func=lambda x: TARGET_LOGIC_LABELS[x],
        )
        submitted = st.form_submit_button("💾 Simpan Perubahan")

    if submitted:
        try:
            store.update_activity(
                activity_id, name=parse_name(name), target_value=parse_target(target), target_logic=logic
            )
        except ValidationError as e:
            st.warning(f"⚠️ {e}")
            return
        except MinilokError as e:
            st.error(f"❌ Gagal memperbarui kegiatan: {e}")
            return
        invalidate_data()
        st.success("✅ Kegiatan diperbarui.")
        st.rerun()

    # Konfirmasi sebelum hapus
    confirm = st.checkbox(
        "Hapus kegiatan ini? Semua data capaian terkait juga akan terhapus.", key=f"entry_delete_confirm:{activity_id}"
    )
    if st.button("🗑️ Hapus Kegiatan", disabled=not confirm, key=f"entry_delete:{activity_id}"):
        try:
            store.delete_activity(activity_id)
        except MinilokError as e:
            st.error(f"❌ Gagal menghapus kegiatan: {e}")
            return
        invalidate_data()
        st.rerun()


def show_data_entry(store, month, year):
    cluster = cluster_selector(CLUSTER_KEY)
    data = load_cluster_data("entry", store, cluster, month, year, CLUSTER_KEY)
    activities = unique_by_id(data["activities"])

    col_table, col_manage = st.columns([2, 1])
    with col_table:
        st.subheader(f"✏️ Input Capaian {MONTHS[month]} {year}")
        if activities:
            _entry_table(store, cluster, activities, data["achievements"], month, year)
        else:
            st.info("ℹ️ Belum ada daftar kegiatan untuk kluster ini.")

    with col_manage:
        st.subheader("🗂️ Kelola Kegiatan")
        tab_add, tab_edit = st.tabs(["➕ Tambah Kegiatan", "✏️ Edit / Hapus"])
        with tab_add:
            _add_activity_form(store, cluster)
        with tab_edit:
            _edit_activity_form(store, activities)
