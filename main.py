"""
Main entry point for the Agency Rate Desk application.
"""
import logging
import streamlit as st

from config.settings import config_manager
from data.store import DataStore
from business_logic.agency_controller import AgencyController
from ui.components import BrandsView, ClientAuditView, EstimatorView, HistoryView, KnowledgeBaseView

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def get_controller() -> AgencyController:
    """Build the controller once per session."""
    if 'controller' in st.session_state:
        return st.session_state['controller']

    store = DataStore(config_manager.get_data_dir())
    try:
        config_manager.load_config()
        controller = AgencyController(store)
    except ValueError as e:
        # Without an API key the rate card, brands and history still work
        logger.warning(f"AI features disabled: {str(e)}")
        st.session_state['config_error'] = str(e)
        controller = AgencyController(store, testing_mode=True)

    st.session_state['controller'] = controller
    return controller


def main():
    """Main application entry point."""
    st.set_page_config(
        page_title="Agency Rate Desk",
        page_icon="💼",
        layout="wide",
        initial_sidebar_state="collapsed"
    )

    st.title("💼 Agency Rate Desk")
    st.markdown("Price deliverables against your rate card and track brand retainer profitability")

    controller = get_controller()

    if st.session_state.get('config_error'):
        st.warning(f"⚠️ {st.session_state['config_error']} AI actions will fail until it is set.")

    tabs = st.tabs(["Estimator", "History", "Brands", "Client Audit", "Knowledge Base"])
    views = [
        EstimatorView(controller),
        HistoryView(controller),
        BrandsView(controller),
        ClientAuditView(controller),
        KnowledgeBaseView(controller),
    ]

    for tab, view in zip(tabs, views):
        with tab:
            view.render()


if __name__ == "__main__":
    main()
