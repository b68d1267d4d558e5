from __future__ import annotations

import streamlit as st

st.set_page_config(page_title="Invoicing & Stock", page_icon="🧾", layout="wide")

pages = [
    st.Page("home.py", title="Dashboard", icon="🏠"),
    st.Page("pages/1_🧾_Invoices.py", title="Invoices", icon="🧾"),
    st.Page("pages/2_📦_Stock.py", title="Stock", icon="📦"),
    st.Page("pages/3_👥_Clients.py", title="Clients", icon="👥"),
    st.Page("pages/4_⚙️_Settings.py", title="Company Settings", icon="⚙️"),
    st.Page("pages/5_🧪_Data_Management.py", title="Data Management", icon="🧪"),
]

st.navigation(pages).run()
