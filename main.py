import json
import logging
import sys
from pathlib import Path

from PySide6.QtGui import QAction
from PySide6.QtWidgets import QApplication, QMainWindow, QTabWidget

from highlight_colors import setup
from highlight_colors.widgets import ColorHighlightEditor, QtEditorHost

APP_NAME = "Highlight Colors"


def _split_startup_args(argv: list[str]) -> tuple[list[str], dict[str, str]]:
    files: list[str] = []
    flags: dict[str, str] = {}
    for arg in argv:
        if arg.startswith("--") and "=" in arg:
            key, value = arg[2:].split("=", 1)
            flags[key.strip().lower()] = value.strip()
            continue
        files.append(arg)
    return files, flags


def _load_options(path_value: str | None) -> dict | None:
    text = str(path_value or "").strip()
    if not text:
        return None
    try:
        data = json.loads(Path(text).expanduser().read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logging.getLogger(__name__).warning("Could not read options from %s: %s", text, exc)
        return None
    return data if isinstance(data, dict) else None


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return ""


class HighlightColorsWindow(QMainWindow):
    def __init__(self, files: list[str], options: dict | None = None):
        super().__init__()
        self.setWindowTitle(APP_NAME)
        self.resize(900, 640)
        self.host = QtEditorHost(self)
        self.controller = setup(self.host, options, event_source=self.host)

        self.tabs = QTabWidget(self)
        self.tabs.setTabsClosable(True)
        self.tabs.tabCloseRequested.connect(self._close_tab)
        self.setCentralWidget(self.tabs)

        toolbar = self.addToolBar("Colors")
        for label in ("On", "Off", "Toggle"):
            action = QAction(label, self)
            action.triggered.connect(lambda _checked=False, arg=label: self.controller.run_command(arg))
            toolbar.addAction(action)

        for file_path in files or []:
            self.open_file(file_path)
        if self.tabs.count() == 0:
            self.open_text("untitled.css", ":root {\n  --accent: #3b82f6;\n}\n\n.button {\n  color: var(--accent);\n  background: rgb(255 0 0 / 50%);\n  border-color: hsl(120, 100%, 25%);\n  outline-color: rebeccapurple;\n}\n")

    def open_file(self, file_path: str) -> None:
        path = Path(file_path).expanduser()
        self.open_text(str(path), _read_text(path))

    def open_text(self, document_id: str, text: str) -> None:
        editor = ColorHighlightEditor(self)
        editor.setPlainText(text)
        self.host.register_editor(document_id, editor, file_path=document_id)
        self.tabs.addTab(editor, Path(document_id).name)
        self.controller.refresh_highlights(document_id, True)

    def _close_tab(self, index: int) -> None:
        editor = self.tabs.widget(index)
        for document_id in self.host.listed_documents():
            if self.host.editor(document_id) is editor:
                self.host.unregister_editor(document_id)
                break
        self.tabs.removeTab(index)
        if editor is not None:
            editor.deleteLater()

    def closeEvent(self, event):
        self.controller.shutdown()
        super().closeEvent(event)


if __name__ == "__main__":
    cli_files, cli_flags = _split_startup_args(sys.argv[1:])
    logging.basicConfig(
        level=getattr(logging, cli_flags.get("log-level", "WARNING").upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = QApplication([sys.argv[0]])
    app.setStyle("Fusion")
    app.setApplicationName(APP_NAME)
    window = HighlightColorsWindow(cli_files, _load_options(cli_flags.get("config")))
    window.show()
    sys.exit(app.exec())
