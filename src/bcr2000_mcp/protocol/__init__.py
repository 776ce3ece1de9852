"""Protocol layer: SysEx framing and BCL script builders."""

from .framing import Frame, build_frame, parse_frame
from .script import catalog_script, init_script, script_for
