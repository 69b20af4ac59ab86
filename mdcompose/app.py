#!/usr/bin/env python3
"""mdcompose: live academic document composer (editor + themed preview)."""

from __future__ import annotations

import argparse
import json
import logging
import re
import sys
from pathlib import Path

from PySide6.QtCore import Qt, QTimer, QUrl
from PySide6.QtGui import QAction, QFont
from PySide6.QtWebEngineCore import QWebEngineSettings
from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import (
    QApplication,
    QCheckBox,
    QComboBox,
    QDoubleSpinBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QPlainTextEdit,
    QPushButton,
    QSizePolicy,
    QSpinBox,
    QSplitter,
    QVBoxLayout,
    QWidget,
)

from mdcompose.autofit import AutoFitScaler, parse_measurements
from mdcompose.exceptions import ConfigurationError
from mdcompose.renderer import (
    DocumentRenderer,
    RenderedDocument,
    build_page,
    mathjax_script_sources,
    resolve_local_mathjax_script,
)
from mdcompose.settings import (
    DEFAULT_CONTENT,
    DEFAULT_SETTINGS,
    CompressionLevel,
    DocumentSettings,
    config_file_path,
    load_last_document_path,
    save_last_document_path,
)
from mdcompose.themes import ThemeType
from mdcompose.viewport import QtDebounceTimer, ScrollMetrics, ViewportCoordinator, ZoomTransform

logger = logging.getLogger(__name__)

RENDER_DELAY_MS = 250
AUTOFIT_RESIZE_DELAY_MS = 150
# Late MathJax typesetting shifts layout; re-measure a few times after load.
POST_LOAD_REMEASURE_MS = (450, 1500)
TAG_RE = re.compile(r"<[^>]+>")

PAGE_METRICS_JS = """
(() => {
  const page = document.querySelector(".preview-page");
  if (!page) {
    return { pageHeight: 0, pageTop: 0, headings: [] };
  }
  const pageRect = page.getBoundingClientRect();
  // Offsets come back unscaled; the coordinator applies the current zoom.
  const scale = page.offsetHeight ? pageRect.height / page.offsetHeight : 1;
  const offsetOf = (node) => (node.getBoundingClientRect().top - pageRect.top) / scale;
  const headings = [];
  document.querySelectorAll(".doc-toc a[data-heading-id]").forEach((link) => {
    const id = link.getAttribute("data-heading-id");
    const target = document.getElementById(id);
    if (target) {
      headings.push([id, offsetOf(target)]);
    }
  });
  if (!headings.length) {
    page.querySelectorAll(".preview-content h1[id], .preview-content h2[id]").forEach((node) => {
      headings.push([node.id, offsetOf(node)]);
    });
  }
  return {
    pageHeight: page.offsetHeight,
    pageTop: pageRect.top + window.scrollY,
    headings: headings,
  };
})();
"""


class EditorPane:
    """ScrollPane adapter over the source editor's vertical scrollbar."""

    def __init__(self, editor: QPlainTextEdit) -> None:
        self.editor = editor

    def scroll_metrics(self) -> ScrollMetrics | None:
        bar = self.editor.verticalScrollBar()
        if bar is None:
            return None
        page_step = float(bar.pageStep())
        return ScrollMetrics(
            scroll_top=float(bar.value()),
            scroll_height=float(bar.maximum()) + page_step,
            client_height=page_step,
        )

    def set_scroll_top(self, value: float) -> None:
        bar = self.editor.verticalScrollBar()
        if bar is not None:
            bar.setValue(round(value))


class WebPreviewPane:
    """PreviewPane adapter over the QWebEngineView page."""

    def __init__(self, view: QWebEngineView) -> None:
        self.view = view
        self.measured_page_height: float | None = None

    def scroll_metrics(self) -> ScrollMetrics | None:
        page = self.view.page()
        if page is None:
            return None
        content_height = float(page.contentsSize().height())
        if content_height <= 0:
            return None
        return ScrollMetrics(
            scroll_top=float(page.scrollPosition().y()),
            scroll_height=content_height,
            client_height=float(self.view.height()),
        )

    def set_scroll_top(self, value: float) -> None:
        page = self.view.page()
        if page is None:
            return
        page.runJavaScript(f"window.scrollTo(0, {json.dumps(float(value))});")

    def page_height(self) -> float | None:
        return self.measured_page_height

    def apply_zoom(self, transform: ZoomTransform) -> None:
        page = self.view.page()
        if page is None:
            return
        style = json.dumps(
            {
                "transform": transform.css_transform,
                "transformOrigin": transform.origin,
                "marginBottom": f"{transform.margin_bottom:g}px" if transform.margin_bottom else "",
            }
        )
        page.runJavaScript(
            f"""
(() => {{
  const page = document.querySelector(".preview-page");
  if (!page) {{
    return false;
  }}
  Object.assign(page.style, {style});
  return true;
}})();
"""
        )


class MdComposeWindow(QMainWindow):
    def __init__(self, text: str, settings: DocumentSettings, document_path: Path | None = None):
        super().__init__()
        self.settings = settings
        self.document_path = document_path
        self.renderer = DocumentRenderer()
        self.autofit = AutoFitScaler()
        self._mathjax_sources = mathjax_script_sources(resolve_local_mathjax_script())
        self._current_document: RenderedDocument | None = None
        self._render_generation = 0
        self._restore_fraction = 0.0

        self.render_timer = QTimer(self)
        self.render_timer.setSingleShot(True)
        self.render_timer.setInterval(RENDER_DELAY_MS)
        self.render_timer.timeout.connect(self._render_now)
        self._autofit_timer = QTimer(self)
        self._autofit_timer.setSingleShot(True)
        self._autofit_timer.setInterval(AUTOFIT_RESIZE_DELAY_MS)
        self._autofit_timer.timeout.connect(self._on_resize_settled)

        self.setWindowTitle("mdcompose")
        self.resize(1540, 980)

        self.editor = QPlainTextEdit()
        self.editor.setPlainText(text)
        self.editor.setFont(QFont("Noto Sans Mono", 11))
        self.editor.textChanged.connect(self._schedule_render)

        self.preview = QWebEngineView()
        preview_settings = self.preview.settings()
        # Local HTML pulls MathJax from a CDN when no local bundle exists.
        preview_settings.setAttribute(QWebEngineSettings.WebAttribute.LocalContentCanAccessRemoteUrls, True)
        preview_settings.setAttribute(QWebEngineSettings.WebAttribute.LocalContentCanAccessFileUrls, True)
        if hasattr(QWebEngineSettings.WebAttribute, "PrintElementBackgrounds"):
            preview_settings.setAttribute(QWebEngineSettings.WebAttribute.PrintElementBackgrounds, True)
        self.preview.loadFinished.connect(self._on_preview_load_finished)

        self.editor_pane = EditorPane(self.editor)
        self.preview_pane = WebPreviewPane(self.preview)
        self.coordinator = ViewportCoordinator(
            self.editor_pane,
            self.preview_pane,
            QtDebounceTimer(self),
            on_active_heading=self._on_active_heading_changed,
            on_progress=self._on_scroll_progress,
        )
        self.editor.verticalScrollBar().valueChanged.connect(lambda _value: self.coordinator.on_source_scroll())
        self.preview.page().scrollPositionChanged.connect(self._on_preview_scrolled)

        self.splitter = QSplitter(Qt.Horizontal)
        self.splitter.addWidget(self.preview)
        self.splitter.addWidget(self.editor)
        self.splitter.setChildrenCollapsible(False)
        self.splitter.setStretchFactor(0, 1)
        self.splitter.setStretchFactor(1, 1)

        central = QWidget()
        layout = QVBoxLayout(central)
        layout.addWidget(self._build_controls())
        layout.addWidget(self.splitter, 1)
        self.setCentralWidget(central)

        self.progress_label = QLabel("0%")
        self.section_label = QLabel("")
        self.statusBar().addPermanentWidget(self.section_label)
        self.statusBar().addPermanentWidget(self.progress_label)
        self.statusBar().showMessage("Ready")

        self._add_shortcuts()
        self._render_now()

    def _build_controls(self) -> QWidget:
        self.title_input = QLineEdit(self.settings.title)
        self.title_input.setPlaceholderText("Document title")
        self.title_input.textChanged.connect(lambda value: self._update_settings(title=value))

        self.theme_combo = QComboBox()
        for theme in ThemeType:
            self.theme_combo.addItem(theme.value.capitalize(), theme)
        self.theme_combo.setCurrentIndex(list(ThemeType).index(self.settings.theme))
        self.theme_combo.currentIndexChanged.connect(
            lambda _index: self._update_settings(theme=self.theme_combo.currentData())
        )

        self.compression_combo = QComboBox()
        for level in CompressionLevel:
            self.compression_combo.addItem(f"Compression: {level.value}", level)
        self.compression_combo.setCurrentIndex(list(CompressionLevel).index(self.settings.compression))
        self.compression_combo.currentIndexChanged.connect(
            lambda _index: self._update_settings(compression=self.compression_combo.currentData())
        )

        self.direction_combo = QComboBox()
        self.direction_combo.addItem("RTL", "rtl")
        self.direction_combo.addItem("LTR", "ltr")
        self.direction_combo.setCurrentIndex(0 if self.settings.direction == "rtl" else 1)
        self.direction_combo.currentIndexChanged.connect(
            lambda _index: self._update_settings(direction=self.direction_combo.currentData())
        )

        toc_box = QCheckBox("TOC")
        toc_box.setChecked(self.settings.show_toc)
        toc_box.toggled.connect(lambda checked: self._update_settings(show_toc=checked))
        date_box = QCheckBox("Date")
        date_box.setChecked(self.settings.show_date)
        date_box.toggled.connect(lambda checked: self._update_settings(show_date=checked))

        font_spin = QDoubleSpinBox()
        font_spin.setRange(8.0, 32.0)
        font_spin.setSingleStep(0.5)
        font_spin.setSuffix(" px")
        font_spin.setValue(self.settings.font_size)
        font_spin.valueChanged.connect(lambda value: self._update_settings(font_size=value))

        line_spin = QDoubleSpinBox()
        line_spin.setRange(1.0, 3.0)
        line_spin.setSingleStep(0.05)
        line_spin.setValue(self.settings.line_height)
        line_spin.valueChanged.connect(lambda value: self._update_settings(line_height=value))

        margin_spin = QSpinBox()
        margin_spin.setRange(0, 40)
        margin_spin.setValue(int(self.settings.margins))
        margin_spin.valueChanged.connect(lambda value: self._update_settings(margins=float(value)))

        zoom_out_btn = QPushButton("-")
        zoom_out_btn.clicked.connect(lambda: self._apply_zoom_result(self.coordinator.zoom_out()))
        self.zoom_label = QLabel("100%")
        zoom_in_btn = QPushButton("+")
        zoom_in_btn.clicked.connect(lambda: self._apply_zoom_result(self.coordinator.zoom_in()))
        zoom_reset_btn = QPushButton("Reset")
        zoom_reset_btn.clicked.connect(lambda: self._apply_zoom_result(self.coordinator.reset_zoom()))

        self.sync_box = QCheckBox("Sync scroll")
        self.sync_box.setChecked(self.coordinator.sync_enabled)
        self.sync_box.toggled.connect(self.coordinator.set_sync_enabled)

        bar = QHBoxLayout()
        bar.setContentsMargins(0, 0, 0, 0)
        for widget in (
            self.title_input,
            self.theme_combo,
            self.compression_combo,
            self.direction_combo,
            toc_box,
            date_box,
            QLabel("Font"),
            font_spin,
            QLabel("Line"),
            line_spin,
            QLabel("Margins"),
            margin_spin,
        ):
            bar.addWidget(widget)
        bar.addStretch(1)
        for widget in (zoom_out_btn, self.zoom_label, zoom_in_btn, zoom_reset_btn, self.sync_box):
            bar.addWidget(widget)

        controls = QWidget()
        controls.setLayout(bar)
        controls.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Fixed)
        return controls

    def _add_shortcuts(self) -> None:
        """Register window-level zoom shortcuts."""
        for text, shortcut, handler in (
            ("Zoom in", "Ctrl+=", self.coordinator.zoom_in),
            ("Zoom out", "Ctrl+-", self.coordinator.zoom_out),
            ("Reset zoom", "Ctrl+0", self.coordinator.reset_zoom),
        ):
            action = QAction(text, self)
            action.setShortcut(shortcut)
            action.triggered.connect(lambda _checked=False, h=handler: self._apply_zoom_result(h()))
            self.addAction(action)

    def resizeEvent(self, event) -> None:  # noqa: N802
        super().resizeEvent(event)
        self._autofit_timer.start()

    def _update_settings(self, **changes) -> None:
        try:
            self.settings = self.settings.with_changes(**changes)
        except ConfigurationError as exc:
            self.statusBar().showMessage(f"Invalid setting: {exc}", 5000)
            return
        self._schedule_render()

    def _schedule_render(self) -> None:
        self.render_timer.start()

    def _render_now(self) -> None:
        document = self.renderer.render(self.editor.toPlainText(), self.settings)
        if document is None:
            # Keep the last committed preview; the next edit retries.
            self.statusBar().showMessage("Math typesetter unavailable; preview not updated", 3000)
            return
        self._render_generation += 1
        self._current_document = document
        self._restore_fraction = self.coordinator.preview_fraction
        base_dir = self.document_path.parent if self.document_path is not None else Path.cwd()
        page_html = build_page(document, self.settings, self._mathjax_sources)
        self.preview.setHtml(page_html, QUrl.fromLocalFile(f"{base_dir}/"))

    def _on_preview_load_finished(self, ok: bool) -> None:
        if not ok:
            self.statusBar().showMessage("Preview load failed", 5000)
            return
        generation = self._render_generation
        # The fresh page mounts unscaled; zoom goes on before anything is measured.
        self._apply_zoom_result(self.coordinator.apply_zoom())
        self._remeasure(generation, restore_scroll=True)
        for delay_ms in POST_LOAD_REMEASURE_MS:
            QTimer.singleShot(delay_ms, lambda g=generation: self._remeasure(g))

    def _on_resize_settled(self) -> None:
        self._remeasure(self._render_generation)

    def _remeasure(self, generation: int, restore_scroll: bool = False) -> None:
        """Run auto-fit, then refresh page height, heading positions and zoom."""
        if generation != self._render_generation:
            return
        self._run_autofit()
        self.preview.page().runJavaScript(
            PAGE_METRICS_JS,
            lambda result, g=generation, r=restore_scroll: self._on_page_metrics(g, r, result),
        )

    def _on_page_metrics(self, generation: int, restore_scroll: bool, result) -> None:
        if generation != self._render_generation or not isinstance(result, dict):
            return
        try:
            self.preview_pane.measured_page_height = float(result.get("pageHeight") or 0) or None
        except (TypeError, ValueError):
            self.preview_pane.measured_page_height = None
        positions: list[tuple[str, float]] = []
        for item in result.get("headings") or []:
            try:
                positions.append((str(item[0]), float(item[1])))
            except (IndexError, TypeError, ValueError):
                continue
        try:
            page_top = float(result.get("pageTop") or 0)
        except (TypeError, ValueError):
            page_top = 0.0
        # Page height may have changed, and the zoom margin follows it.
        self._apply_zoom_result(self.coordinator.apply_zoom())
        self.coordinator.set_heading_positions(positions, page_top)
        if restore_scroll and self._restore_fraction > 0:
            fraction_json = json.dumps(self._restore_fraction)
            self.preview.page().runJavaScript(
                "window.scrollTo(0, "
                f"{fraction_json} * Math.max(0, document.documentElement.scrollHeight - window.innerHeight));"
            )

    def _run_autofit(self) -> None:
        self.preview.page().runJavaScript(self.autofit.measure_script(), self._on_autofit_measured)

    def _on_autofit_measured(self, result) -> None:
        transforms = self.autofit.plan(parse_measurements(result))
        if transforms:
            logger.debug("Auto-fit scaling %d math blocks", len(transforms))
            self.preview.page().runJavaScript(self.autofit.apply_script(transforms))

    def _on_preview_scrolled(self, _position) -> None:
        if self.coordinator.sync_enabled:
            self.coordinator.on_preview_scroll()
        else:
            self.coordinator.track_preview()

    def _apply_zoom_result(self, transform: ZoomTransform) -> None:
        self.zoom_label.setText(f"{round(transform.scale * 100)}%")

    def _on_scroll_progress(self, fraction: float) -> None:
        self.progress_label.setText(f"{round(fraction * 100)}%")

    def _on_active_heading_changed(self, heading_id: str | None) -> None:
        title = ""
        if heading_id is not None and self._current_document is not None:
            for entry in self._current_document.headings:
                if entry.id == heading_id:
                    title = TAG_RE.sub("", entry.text)
                    break
        self.section_label.setText(title)
        id_json = json.dumps(heading_id)
        self.preview.page().runJavaScript(
            f"""
(() => {{
  const activeId = {id_json};
  document.querySelectorAll(".doc-toc a[data-heading-id]").forEach((link) => {{
    link.classList.toggle("active", link.getAttribute("data-heading-id") === activeId);
  }});
}})();
"""
        )


def main() -> int:
    parser = argparse.ArgumentParser(
        prog="mdcompose",
        description="Compose academic documents with a live themed preview.",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Markdown file to open (default: last file named in ~/.mdcompose.cfg, or a sample document).",
    )
    parser.add_argument("--ltr", action="store_true", help="Start in left-to-right mode.")
    parser.add_argument("--verbose", action="store_true", help="Log pipeline diagnostics to stderr.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    path = Path(args.path).expanduser() if args.path is not None else load_last_document_path()
    text = DEFAULT_CONTENT
    if path is not None:
        if not path.is_file():
            print(f"File does not exist: {path}", file=sys.stderr)
            return 2
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            print(f"Could not read {path}: {exc}", file=sys.stderr)
            return 2
        save_last_document_path(path, config_file_path())

    settings = DEFAULT_SETTINGS
    if args.ltr:
        settings = settings.with_changes(direction="ltr")

    app = QApplication(sys.argv)
    app.setApplicationName("mdcompose")
    window = MdComposeWindow(text, settings, path)
    window.show()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
