from __future__ import annotations

import asyncio
from typing import Optional

import pandas as pd
import streamlit as st

from camcatalog.catalog_client import CatalogClient
from camcatalog.catalog_view import build_item_views, extract_brands, has_active_filters, summarize_records
from camcatalog.config import PRICE_TYPES, SORT_FIELDS, CatalogSettings
from camcatalog.env import load_dotenv
from camcatalog.fetch_coordinator import FetchOutcome, ListingFetchCoordinator
from camcatalog.filters import STATUS_VALUES, FilterState, initial_criteria
from camcatalog.query import QueryDescriptor

GRID_COLUMNS = 4

# ============================================================
# Session setup
# ============================================================
st.set_page_config(page_title="Camera Catalog", layout="wide")
load_dotenv()

if "settings" not in st.session_state:
    st.session_state.settings = CatalogSettings.from_env()
settings: CatalogSettings = st.session_state.settings

if "filters" not in st.session_state:
    st.session_state.filters = FilterState(
        initial_criteria(
            sort_by=settings.default_sort_by,
            sort_order=settings.default_sort_order,
            price_type=settings.default_price_type,
        )
    )
filters: FilterState = st.session_state.filters

if "coordinator" not in st.session_state:
    st.session_state.coordinator = ListingFetchCoordinator.from_client(CatalogClient(settings))
coordinator: ListingFetchCoordinator = st.session_state.coordinator


def fetch_listing(descriptor: QueryDescriptor) -> FetchOutcome:
    return asyncio.run(coordinator.request(descriptor))


def request_retry() -> None:
    st.session_state.retry_listing = True


def sync_statuses(axis: str, selected: list[int], current: frozenset[int]) -> None:
    for value in current.symmetric_difference(selected):
        filters.toggle_status(axis, value)


def sort_button_label(field: str) -> str:
    criteria = filters.snapshot()
    if criteria.sort_by != field:
        return field.title()
    arrow = "▲" if criteria.sort_order == "asc" else "▼"
    return f"{field.title()} {arrow}"


# ============================================================
# Sidebar filters
# ============================================================
with st.sidebar:
    st.markdown("### Filters")
    search = st.text_input("Search cameras", value=filters.snapshot().search)
    filters.set_search(search)

    criteria = filters.snapshot()
    mechanical = st.multiselect(
        "Mechanical condition",
        options=list(STATUS_VALUES),
        default=sorted(criteria.mechanical_status),
    )
    sync_statuses("mechanical", mechanical, criteria.mechanical_status)
    cosmetic = st.multiselect(
        "Cosmetic condition",
        options=list(STATUS_VALUES),
        default=sorted(criteria.cosmetic_status),
    )
    sync_statuses("cosmetic", cosmetic, criteria.cosmetic_status)

    c1, c2 = st.columns(2)
    with c1:
        min_price = st.text_input("Min price", value=criteria.min_price, placeholder="0")
    with c2:
        max_price = st.text_input("Max price", value=criteria.max_price, placeholder="No limit")
    filters.set_price_range("min", min_price)
    filters.set_price_range("max", max_price)

    price_type = st.radio(
        "Price shown",
        options=list(PRICE_TYPES),
        index=list(PRICE_TYPES).index(filters.snapshot().price_type),
        horizontal=True,
    )
    filters.set_price_type(price_type)

    if has_active_filters(filters.snapshot()) and st.button("Clear all filters"):
        filters.clear_filters()
        st.rerun()

# ============================================================
# Listing
# ============================================================
criteria = filters.snapshot()
descriptor = QueryDescriptor.from_criteria(criteria)
state = coordinator.state
if st.session_state.pop("retry_listing", False) or coordinator.is_stale(descriptor):
    outcome: Optional[FetchOutcome] = fetch_listing(descriptor)
else:
    outcome = None

st.markdown("## Camera Catalog")
if state.error:
    st.error(f"Error loading cameras: {state.error}")
    st.button("Retry", on_click=request_retry)

brands = extract_brands(state.records)
if brands:
    brand_cols = st.columns(min(len(brands), 8) + 1)
    if brand_cols[0].button("All", type="primary" if not criteria.brand else "secondary"):
        filters.set_brand("")
        st.rerun()
    for idx, brand in enumerate(brands[: len(brand_cols) - 1], start=1):
        if brand_cols[idx].button(brand, type="primary" if criteria.brand == brand else "secondary"):
            filters.toggle_brand(brand)
            st.rerun()

sort_cols = st.columns(len(SORT_FIELDS) + 1)
sort_cols[0].caption("Sort by")
for idx, field in enumerate(SORT_FIELDS, start=1):
    if sort_cols[idx].button(sort_button_label(field), key=f"sort-{field}"):
        filters.set_sort(field)
        st.rerun()

views = build_item_views(state.records, filters.snapshot(), settings)
summary = summarize_records([view.record for view in views], criteria.price_type)
m1, m2, m3 = st.columns(3)
m1.metric("Cameras", summary["total_items"])
m2.metric("Total value", f"${summary['total_value']:,.2f}")
m3.metric("Brands", summary["brand_count"])

tab_grid, tab_table = st.tabs(["Grid", "Table"])
with tab_grid:
    if not views:
        st.info("No cameras match the current filters.")
    for start in range(0, len(views), GRID_COLUMNS):
        cols = st.columns(GRID_COLUMNS)
        for col, view in zip(cols, views[start : start + GRID_COLUMNS]):
            with col:
                if view.image.display_url:
                    st.image(view.image.display_url, use_container_width=True)
                else:
                    st.caption("No image")
                st.markdown(f"**{view.title}**")
                if view.image.show_badge:
                    st.caption(f"{view.image.badge_label} image ({view.image.badge})")
                if view.image.attribution:
                    st.caption(view.image.attribution)
                st.write(view.price_text)
                st.caption(f"Mechanical: {view.mechanical_label} · Cosmetic: {view.cosmetic_label}")

with tab_table:
    df = pd.DataFrame([view.to_row() for view in views])
    if df.empty:
        st.caption("Nothing to show.")
    else:
        st.dataframe(
            df,
            use_container_width=True,
            hide_index=True,
            column_config={"image_url": st.column_config.ImageColumn("image")},
        )

with st.expander("Request"):
    st.code(descriptor.query_string or "(no parameters)")
    st.json(criteria.to_dict())
    if outcome is not None:
        st.caption(f"Last fetch: {outcome.status}")
