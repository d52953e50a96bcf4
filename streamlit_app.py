from __future__ import annotations

import logging
import os
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parent
SRC = ROOT / "src"
if SRC.exists() and str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import streamlit as st

import kpi_review
from kpi_review import config
from kpi_review.app.pages import rating_preview

logging.basicConfig(level=config.log_level(), format="%(levelname)s %(message)s")

st.set_page_config(page_title="kpi-review", layout="wide")

st.sidebar.title("KPI Review")

build_number = (
    os.getenv("APP_BUILD")
    or os.getenv("BUILD_NUMBER")
    or kpi_review.__version__
)
st.sidebar.caption(f"Build: {build_number}")

PAGES = {
    "Rating preview": rating_preview.render,
}

selected = st.sidebar.radio("Pages", list(PAGES.keys()), key="sidebar_page")
PAGES[selected]()
