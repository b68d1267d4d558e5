from __future__ import annotations

import streamlit as st
import pandas as pd

from invoicing.config import get_settings, get_store
from invoicing.services.stats import get_stats, invoices_frame
from invoicing.services.stock import list_stock, low_stock_items, stock_value

st.set_page_config(page_title="Invoicing & Stock", page_icon="🧾", layout="wide")

st.title("🧾 Invoicing & Stock — Dashboard")
st.caption("Invoices move stock when they are confirmed; clients are tracked from the invoices you save.")

settings = get_settings()
store = get_store()

with st.sidebar:
    st.subheader("Environment")
    st.write(f"**Data directory:** `{settings.data_dir}`")
    st.write(f"**Database:** `{settings.db_path.name}`")

stats = get_stats(store)

c1, c2, c3, c4 = st.columns(4)
c1.metric("This month", f"{stats.month_total:,.2f} {settings.currency}")
c2.metric("Invoices", f"{stats.total_invoices}")
c3.metric("Last client", stats.last_client)
c4.metric("Stock items", f"{len(list_stock(store))}")

st.caption(f"Stock value at purchase price: **{stock_value(store):,.2f} {settings.currency}**")

low = low_stock_items(store)
if low:
    st.warning(f"Low stock alert ({len(low)} item(s))")
    st.dataframe(
        pd.DataFrame(
            [
                {
                    "name": s.get("name"),
                    "reference": s.get("reference"),
                    "available": s.get("quantity_available"),
                    "minimum": s.get("min_quantity"),
                    "unit": s.get("purchase_unit"),
                }
                for s in low
            ]
        ),
        use_container_width=True,
        hide_index=True,
    )

st.subheader("Recent invoices")
df = invoices_frame(store)
if df.empty:
    st.info("No invoices yet. Create one in **🧾 Invoices** or load demo data in **🧪 Data Management**.", icon="ℹ️")
else:
    st.dataframe(df.drop(columns=["id"]).head(10), use_container_width=True, hide_index=True)
