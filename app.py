import os
import sys
import logging
import traceback
import streamlit as st

# Add project directory to path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from stereograph.defaults import load_default_images
from stereograph.drop_zone import bind, enable_scroll_to_top_on_drag
from stereograph.errors import InvalidScale
from stereograph.main import generate_stereograph
from stereograph.state import AppState, Side
from stereograph.utils import configure_logging, load_config

logger = logging.getLogger("stereograph.app")

STATE_KEY = "stereograph_state"


def get_state(cfg):
    """The session's AppState, created on first run"""
    if STATE_KEY not in st.session_state:
        st.session_state[STATE_KEY] = AppState.from_config(cfg)
        logger.info("Started new stereograph session")
    return st.session_state[STATE_KEY]


def render_drop_zones(state, cfg):
    ui_cfg = cfg["ui"]
    thumbnail_size = (int(ui_cfg["thumbnail_width"]), int(ui_cfg["thumbnail_height"]))
    zones = {}
    uploads = {}
    for side, col in zip(Side, st.columns(2, gap="large")):
        with col:
            zone = bind(
                state.slot(side),
                on_file_accepted=lambda bitmap, side=side: logger.info(f"{side.value.capitalize()} image loaded."),
                placeholder=st.empty(),
                thumbnail_size=thumbnail_size,
            )
            uploads[side] = zone.uploader()
            zones[side] = zone

    if not state.defaults_requested:
        load_default_images(state, zones, cfg)

    for side, zone in zones.items():
        if not zone.accept(uploads[side]):
            zone.refresh()
    return zones


def render_controls(state, cfg):
    settings = state.settings
    col1, col2 = st.columns(2)
    with col1:
        settings.scale = st.number_input(
            "Image Scale",
            min_value=0.01,
            max_value=float(settings.max_scale),
            value=float(cfg["settings"]["scale"]),
            step=0.1,
            key="image_scale",
        )
    with col2:
        settings.flip = st.checkbox(
            "Flip Images",
            value=bool(cfg["settings"]["flip"]),
            key="flip_images",
            help="Swap left and right, e.g. to switch between parallel and cross-view",
        )


def render_output(state):
    st.subheader("Output Image")
    presenter = state.presenter
    resource = presenter.current
    if not presenter.visible or resource is None:
        st.caption("Press 'Generate Stereograph' to combine the two images.")
        return
    st.image(resource.data, caption=f"Generated Stereograph ({resource.width} x {resource.height})")
    st.download_button(
        label="Download Stereograph",
        data=resource.data,
        file_name=resource.file_name,
        mime=resource.mime_type,
    )


def main():
    cfg = load_config()
    configure_logging(cfg)
    app_cfg = cfg["app"]

    st.set_page_config(
        page_title=app_cfg["title"],
        page_icon="👓",
        layout="wide"
    )

    st.title(app_cfg["title"])
    st.markdown("---")

    if cfg["ui"]["scroll_to_top_on_drag"]:
        enable_scroll_to_top_on_drag()

    state = get_state(cfg)
    render_drop_zones(state, cfg)
    render_controls(state, cfg)

    if st.button("Generate Stereograph", type="primary"):
        try:
            generate_stereograph(state)
        except InvalidScale as e:
            logger.warning(f"Invalid scale: {e}")
            st.error(str(e))
        except Exception as e:
            logger.error(f"Error generating stereograph: {e}")
            logger.error(traceback.format_exc())
            st.error(f"Failed to generate stereograph: {e}")

    render_output(state)

    with st.expander("ℹ️ About this App"):
        st.markdown("""
        ### Stereograph Generator

        Combines a left and a right eye photograph side by side for
        parallel or cross-view stereogram viewing.

        **How to use:**
        1. Drop (or click to pick) the LEFT and RIGHT eye images
        2. Optionally set an image scale and flip the order for cross-view
        3. Click 'Generate Stereograph'
        4. Save the result with the download button or the image's context menu
        """)

    if app_cfg.get("footer"):
        st.caption(app_cfg["footer"])


if __name__ == "__main__":
    main()
