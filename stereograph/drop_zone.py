import logging
import streamlit as st
import streamlit.components.v1 as components

from .errors import DecodeFailed
from .image_source import cover_fit, encode_image, is_image_file, read_uploaded_file
from .state import SlotState

logger = logging.getLogger(__name__)

LOADING_MESSAGE = "Loading default image..."
UPLOAD_LOADING_MESSAGE = "Loading image..."

_SCROLL_TO_TOP_ON_DRAG = """
<script>
const root = window.parent;
if (!root.__stereographDragScroll) {
  root.__stereographDragScroll = true;
  root.addEventListener('dragover', (event) => {
    if (event.dataTransfer && event.dataTransfer.types.includes('Files')) {
      root.scrollTo({ top: 0, behavior: 'smooth' });
      const main = root.document.querySelector('section.main, [data-testid="stMain"]');
      if (main) main.scrollTo({ top: 0, behavior: 'smooth' });
    }
  });
}
</script>
"""


def enable_scroll_to_top_on_drag():
    """Scroll the page to the top whenever files are dragged over it."""
    components.html(_SCROLL_TO_TOP_ON_DRAG, height=0)


def upload_id(uploaded_file):
    file_id = getattr(uploaded_file, "file_id", None)
    if file_id:
        return file_id
    return f"{uploaded_file.name}:{getattr(uploaded_file, 'size', '?')}"


class DropZone:
    """The thumbnail area and uploader for one slot.

    The uploader widget gives both click-to-browse and drag-and-drop. The
    placeholder shows exactly one of: prompt, loading message, thumbnail or
    error, following the slot's state.
    """

    def __init__(self, slot, on_file_accepted=None, placeholder=None, thumbnail_size=(200, 150)):
        self.slot = slot
        self.label = f"Drop {slot.side.label} Image Here"
        self.on_file_accepted = on_file_accepted
        self.placeholder = placeholder if placeholder is not None else st.empty()
        self.thumbnail_size = tuple(thumbnail_size)

    def uploader(self, container=None):
        container = container if container is not None else st
        return container.file_uploader(
            self.label,
            key=f"{self.slot.side.value}_upload",
            help=f"Click to browse or drag an image here for the {self.slot.side.value} eye",
        )

    def accept(self, uploaded_file) -> bool:
        """Load a picked or dropped file into the slot. Returns True if the slot now holds it."""
        if uploaded_file is None:
            return False
        source = upload_id(uploaded_file)
        if source == self.slot.source:
            return False
        # A non-image drop leaves the slot untouched
        if not is_image_file(uploaded_file.name, getattr(uploaded_file, "type", None)):
            logger.debug(f"Ignoring non-image upload {uploaded_file.name!r}")
            return False
        token = self.slot.begin_load(source)
        self.show_loading(UPLOAD_LOADING_MESSAGE)
        try:
            bitmap = read_uploaded_file(uploaded_file)
        except DecodeFailed as e:
            logger.warning(f"{self.slot.side.label} upload failed: {e}")
            self.fail(token, f"Failed to load {uploaded_file.name}")
            return False
        return self.deliver(token, bitmap)

    def deliver(self, token, bitmap) -> bool:
        if not self.slot.finish(token, bitmap):
            return False
        if self.on_file_accepted is not None:
            self.on_file_accepted(bitmap)
        self.show_image(bitmap)
        return True

    def fail(self, token, message) -> bool:
        if not self.slot.fail(token, message):
            return False
        self.show_error(message)
        return True

    def refresh(self):
        state = self.slot.state
        if state is SlotState.READY:
            self.show_image(self.slot.bitmap)
        elif state is SlotState.FAILED:
            self.show_error(self.slot.error)
        elif state is SlotState.LOADING:
            self.show_loading()
        else:
            self.placeholder.info(self.label)

    def show_loading(self, message=LOADING_MESSAGE):
        self.placeholder.caption(f"*{message}*")

    def thumbnail_png(self, bitmap):
        """The cover-fit thumbnail as PNG, cached on the slot so reruns do not re-encode it."""
        cached = self.slot.thumbnail
        if cached is None or cached[0] is not bitmap or cached[1] != self.thumbnail_size:
            width, height = self.thumbnail_size
            data, _ = encode_image(cover_fit(bitmap, width, height), "png")
            self.slot.thumbnail = cached = (bitmap, self.thumbnail_size, data)
        return cached[2]

    def show_image(self, bitmap):
        width, height = self.thumbnail_size
        self.placeholder.image(
            self.thumbnail_png(bitmap),
            caption=f"{bitmap.name or self.slot.side.value} ({bitmap.width} x {bitmap.height})",
            width=width,
        )

    def show_error(self, message):
        self.placeholder.error(message)


def bind(slot, on_file_accepted=None, **kwargs):
    return DropZone(slot, on_file_accepted, **kwargs)
