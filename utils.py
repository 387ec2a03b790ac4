import math
import re
from collections import namedtuple

from errors import ValidationError

# ----------------------------- #
# 🧹 De-duplikasi dan Paginasi
# ----------------------------- #

def unique_by_key(items, key=lambda item: item.id):
    """Buang item dengan kunci yang sama, pertahankan kemunculan pertama."""
    seen = set()
    unique = []
    for item in items:
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        unique.append(item)
    return unique


def total_pages(total_items, page_size):
    if not page_size or total_items == 0:
        return 1
    return math.ceil(total_items / page_size)


def paginate(items, page, page_size):
    """Mengembalikan (item halaman ini, halaman yang dipakai, jumlah halaman).

    page dimulai dari 1; page_size None berarti tampilkan semua.
    """
    pages = total_pages(len(items), page_size)
    page = min(max(int(page), 1), pages)
    if not page_size:
        return list(items), page, pages
    start = (page - 1) * page_size
    return list(items[start:start + page_size]), page, pages


def page_range_label(page, page_size, total_items):
    if total_items == 0:
        return "Data Kegiatan 0 dari 0"
    if not page_size:
        return f"Data Kegiatan 1 - {total_items} dari {total_items}"
    first = (page - 1) * page_size + 1
    last = min(page * page_size, total_items)
    return f"Data Kegiatan {first} - {last} dari {total_items}"


# ----------------------------- #
# 🏷️ Penanda Filter (cegah hasil basi)
# ----------------------------- #
FilterTag = namedtuple("FilterTag", ["cluster_id", "month", "year"])


def accept_result(state, key, tag, current_tag, result):
    """Simpan hasil fetch ke state hanya jika filternya masih filter aktif.

    Hasil yang datang setelah kluster/bulan/tahun berganti dibuang.
    """
    if tag != current_tag:
        return False
    state[key] = {"tag": tag, "data": result}
    return True


def cached_result(state, key, current_tag):
    entry = state.get(key)
    if not entry or entry.get("tag") != current_tag:
        return None
    return entry["data"]


# ----------------------------- #
# ✍️ Validasi Isian Form
# ----------------------------- #

def parse_bulk_names(text):
    names = [line.strip() for line in (text or "").splitlines()]
    names = [n for n in names if n]
    if not names:
        raise ValidationError("Daftar nama kegiatan masih kosong.")
    return names


def parse_name(text):
    name = (text or "").strip()
    if not name:
        raise ValidationError("Nama kegiatan wajib diisi.")
    return name


def parse_target(value):
    if value is None or str(value).strip() == "":
        raise ValidationError("Target wajib diisi.")
    try:
        target = float(str(value).replace(",", "."))
    except ValueError:
        raise ValidationError(f"Target '{value}' bukan angka.") from None
    if math.isnan(target) or math.isinf(target):
        raise ValidationError(f"Target '{value}' bukan angka.")
    return target


def parse_value(value):
    # Isian kosong atau bukan angka dianggap 0
    try:
        number = float(str(value).replace(",", "."))
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    if number < 0:
        raise ValidationError("Nilai capaian tidak boleh negatif.")
    return number


# ----------------------------- #
# 📝 Label dan Nama File
# ----------------------------- #

def truncate_label(name, length=15, suffix="..."):
    if len(name) <= length:
        return name
    return name[:length] + suffix


def _focus_label(selected_ids):
    return "Fokus" if selected_ids else "Lengkap"


def report_filename(cluster, selected_ids, activities):
    if len(selected_ids) == 1:
        match = next((a for a in activities if a.id == selected_ids[0]), None)
        if match is not None:
            slug = re.sub(r"\s+", "_", match.name)
            return f"Laporan_{slug}.pdf"
    return f"Laporan_{cluster.name}_{_focus_label(selected_ids)}.pdf"


def slide_filename(cluster, selected_ids):
    return f"Slide_{cluster.name}_{_focus_label(selected_ids)}.pdf"


def year_options(current_year, window=2, selected=None):
    years = list(range(current_year - window, current_year + window + 1))
    if selected is not None and selected not in years:
        years.append(selected)
    return sorted(years)
