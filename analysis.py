import streamlit as st

from charts import create_bar_chart, create_radar_chart, create_trend_chart
from constants import MONTHS
from kinerja_calc import monthly_trend, unique_by_id
from view_common import cluster_selector, load_cluster_data, page_size_selector, paginated

CLUSTER_KEY = "analysis_cluster"


def show_analysis(store, month, year):
    cluster = cluster_selector(CLUSTER_KEY)
    data = load_cluster_data("analysis", store, cluster, month, year, CLUSTER_KEY, annual=True)
    activities = unique_by_id(data["activities"])

    if not activities:
        st.info("ℹ️ Belum ada kegiatan di kluster ini untuk dianalisis.")
        return

    # Paginasi grafik agar label tetap terbaca
    page_size = page_size_selector(f"analysis_page_size:{cluster.id}", label="Kegiatan per grafik")
    page_items = paginated(activities, f"analysis_page:{cluster.id}:{month}:{year}", page_size)

    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(
            create_bar_chart(page_items, data["achievements"], title=f"Target vs Capaian ({MONTHS[month]} {year})"),
            use_container_width=True,
        )
    with col2:
        st.plotly_chart(create_radar_chart(page_items, data["achievements"]), use_container_width=True)

    st.subheader("📈 Tren Capaian Bulanan")
    trend = monthly_trend(activities, data["annual"], month)
    st.plotly_chart(create_trend_chart(trend), use_container_width=True)
