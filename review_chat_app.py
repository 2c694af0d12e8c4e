import streamlit as st
from utils.logging_config import initialize_logging, get_logger
from services.chat_service.conversation_manager import get_chat_session_manager
from services.ui_service import get_chat_interface
from config.app_config import get_config

# Get configuration
config = get_config()

st.set_page_config(page_title=config.ui.app_title, page_icon=config.ui.page_icon, layout="centered")

# Initialize logging and error tracking
error_tracker = initialize_logging()
logger = get_logger(__name__)


def main_app():
    """Reviewer chat page"""
    st.markdown("""
    <style>
    /* Keep the input pinned on small screens */
    @media (max-width: 768px) {
        .main .block-container {
            padding-left: 1rem;
            padding-right: 1rem;
        }
    }
    </style>
    """, unsafe_allow_html=True)

    manager = get_chat_session_manager()
    interface = get_chat_interface(manager)

    try:
        interface.render()
    except Exception as e:
        error_tracker.track_error(e, "chat_page_render")
        st.error("🔧 **Unexpected error** - Please reload the page.")

    if config.debug:
        with st.sidebar:
            st.subheader("🔧 Debug Tools")
            st.json(config.to_dict())
            st.json(error_tracker.get_error_summary())
            if st.button("Reload chat", type="secondary"):
                manager.reset()
                st.rerun()


main_app()
