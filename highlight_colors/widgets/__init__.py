from highlight_colors.widgets.color_editor import ColorHighlightEditor
from highlight_colors.widgets.qt_host import QtEditorHost

__all__ = ["ColorHighlightEditor", "QtEditorHost"]
