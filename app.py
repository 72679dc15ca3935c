"""Web chat interface using Streamlit."""

import streamlit as st

from shopassist import ChatService
from shopassist.config import config
from shopassist.errors import format_user_error, new_request_id

MAX_SOURCE_PREVIEW_LENGTH = 200

config.setup_logging()
logger = config.get_logger(__name__)


class SessionState:
    """Centralized session state management."""

    @staticmethod
    def initialize() -> None:
        """Initialize all session state variables."""
        defaults = {
            "chat_service": None,
            "session_id": None,
            "last_response": None,
        }

        for key, default_value in defaults.items():
            if key not in st.session_state:
                st.session_state[key] = default_value

    @staticmethod
    def new_conversation() -> None:
        st.session_state.session_id = None
        st.session_state.last_response = None

    @staticmethod
    def is_system_ready() -> bool:
        return st.session_state.get("chat_service") is not None


def validate_configuration() -> bool:
    """Validate application configuration and show user feedback.

    Returns:
        bool: True if configuration is valid, False otherwise.
    """
    try:
        config.validate()
    except ValueError as e:
        st.error(f"Configuration Error: {e}")
        return False
    else:
        return True


def initialize_system() -> bool:
    """Build the chat service from configuration.

    Returns:
        bool: True if initialization succeeds, False otherwise.
    """
    try:
        with st.spinner("Initializing assistant..."):
            st.session_state.chat_service = ChatService.from_config()
        logger.info("Chat service initialized")
    except (ValueError, RuntimeError, OSError) as e:
        logger.exception("Failed to initialize chat service")
        st.error(f"Failed to initialize assistant: {e}")
        return False
    else:
        return True


def render_sidebar() -> None:
    """Render the sidebar with configuration and conversation controls."""
    with st.sidebar:
        st.header("Assistant")

        if (
            st.button("Initialize Assistant", use_container_width=True)
            and validate_configuration()
            and initialize_system()
        ):
            st.rerun()

        st.divider()
        st.subheader("Status")
        st.write(
            "**Assistant:** "
            + ("Ready" if SessionState.is_system_ready() else "Not Initialized")
        )
        st.write(f"**Unmatched intent policy:** {config.INTENT_DEFAULT}")
        if st.session_state.session_id:
            st.write(f"**Session:** `{st.session_state.session_id}`")

        if SessionState.is_system_ready() and st.button(
            "New Conversation", use_container_width=True
        ):
            SessionState.new_conversation()
            st.rerun()


def render_history() -> None:
    service: ChatService = st.session_state.chat_service
    session_id = st.session_state.session_id
    if not session_id:
        return
    for message in service.get_history(session_id):
        with st.chat_message(message.role):
            st.write(message.content)


def render_sources() -> None:
    response = st.session_state.last_response
    if not response or not response.sources:
        return
    with st.expander("Sources", expanded=False):
        for source in response.sources:
            score = f" (score: {source.score:.4f})" if source.score is not None else ""
            st.markdown(f"**{source.title}**{score}")
            text = source.text
            if len(text) > MAX_SOURCE_PREVIEW_LENGTH:
                text = text[:MAX_SOURCE_PREVIEW_LENGTH] + "..."
            st.caption(text)


def render_chat() -> None:
    """Render the conversation and handle a new message."""
    render_history()

    message = st.chat_input("Posez votre question (livraison, retours, produits...)")
    if not message:
        render_sources()
        return

    service: ChatService = st.session_state.chat_service
    with st.spinner("Recherche en cours..."):
        try:
            response = service.process_message(message, st.session_state.session_id)
        except Exception:
            request_id = new_request_id()
            logger.exception("Chat request %s failed", request_id)
            st.error(format_user_error(request_id))
            return

    st.session_state.session_id = response.session_id
    st.session_state.last_response = response
    st.rerun()


def main() -> None:
    """Main entry point for the Streamlit web application."""
    st.set_page_config(page_title="ShopAssist", layout="wide")

    SessionState.initialize()

    st.title("ShopAssist - Assistant client ShopyVerse")
    st.markdown("---")

    render_sidebar()

    if not SessionState.is_system_ready():
        st.info("Please initialize the assistant using the sidebar to get started.")
        return

    render_chat()


if __name__ == "__main__":
    main()
