"""
Render engine page builder.

Builds the widget page for one stage (or the summary stage) from the schema
and the current state. Pages are disposable: every render builds a new page
and the manager throws the previous one away together with every signal
connection its controls own.

Handlers wired by a render belong to that render's RenderGeneration. The
manager invalidates the generation before building the next page, so a
signal that fires from an old control while it is being torn down (Qt
emits editingFinished when a focused line edit is hidden) is recognized
as stale and ignored.
"""

import logging
from dataclasses import dataclass, field as dc_field
from typing import Any, Callable, Dict, List, Mapping, Optional, Set

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QFrame, QLabel, QVBoxLayout, QWidget

from pyqt_stageform.core.performance_monitor import timer
from pyqt_stageform.protocols.form_config import StageFormConfig
from pyqt_stageform.protocols.widget_adapters import radio_option_suffix
from pyqt_stageform.protocols.widget_protocols import InputSignalEmitter
from pyqt_stageform.schema.model import Field, FieldType, FormSchema
from pyqt_stageform.schema.queries import fields_for
from pyqt_stageform.schema.visibility import controller_field_names, should_display
from pyqt_stageform.services.signal_service import SignalService
from .layout_constants import CURRENT_LAYOUT, StageFormLayoutConfig
from .summary import build_summary_page
from .widget_factory import WidgetFactory

logger = logging.getLogger(__name__)

FieldCallback = Callable[[str, Any], None]


def repolish(widget: QWidget) -> None:
    """Re-apply the stylesheet after a dynamic property changed."""
    style = widget.style()
    style.unpolish(widget)
    style.polish(widget)
    widget.update()


class RenderGeneration:
    """
    Token identifying one render of one form instance.

    Handlers created during a render close over its token and do nothing
    once a newer render has superseded it.
    """

    def __init__(self, number: int = 0):
        self.number = number
        self._current = True

    @property
    def is_current(self) -> bool:
        return self._current

    def invalidate(self) -> None:
        self._current = False

    def advance(self) -> 'RenderGeneration':
        """Invalidate this token and return its successor."""
        self.invalidate()
        return RenderGeneration(self.number + 1)

    def __repr__(self) -> str:
        state = "current" if self._current else "stale"
        return f"RenderGeneration({self.number}, {state})"


@dataclass
class FieldControl:
    """Widgets rendered for one field."""
    field: Field
    wrapper: QWidget
    control: QWidget
    focusables: List[QWidget]
    error_label: QLabel
    label: Optional[QLabel] = None
    helper_label: Optional[QLabel] = None

    @property
    def helper_text(self) -> str:
        return self.helper_label.text() if self.helper_label is not None else ""

    @property
    def is_invalid(self) -> bool:
        return bool(self.control.property("invalid"))

    def set_error(self, message: Optional[str]) -> None:
        """Show message bound to the control, or clear the error with None."""
        invalid = message is not None
        if invalid:
            self.error_label.setText(message)
        else:
            self.error_label.clear()
        self.error_label.setVisible(invalid)

        # Error first, then helper, like a describedby list
        description = " ".join(part for part in (message, self.helper_text) if part)
        targets = [self.control] + [w for w in self.focusables if w is not self.control]
        for widget in targets:
            widget.setProperty("invalid", invalid)
            widget.setAccessibleDescription(description)
            repolish(widget)


@dataclass
class RenderedPage:
    """Result of one render: the page widget and its field controls."""
    widget: QWidget
    generation: RenderGeneration
    stage_index: Optional[int] = None
    is_summary: bool = False
    controls: Dict[str, FieldControl] = dc_field(default_factory=dict)

    @property
    def focusables(self) -> List[QWidget]:
        return [widget for control in self.controls.values() for widget in control.focusables]

    def control_for(self, field_name: str) -> Optional[FieldControl]:
        return self.controls.get(field_name)

    def show_errors(self, errors: Mapping[str, str], fallback_message: str) -> List[str]:
        """
        Replace displayed errors with errors. Empty messages use fallback_message.

        Returns:
            Names of the fields the errors could be shown on
        """
        for control in self.controls.values():
            control.set_error(None)

        shown = []
        for field_name, message in errors.items():
            control = self.controls.get(field_name)
            if control is None:
                continue
            control.set_error(message or fallback_message)
            shown.append(field_name)
        return shown


class StagePageBuilder:
    """Builds disposable pages for a StageFormManager."""

    def __init__(
        self,
        config: StageFormConfig,
        instance_id: str,
        layout_config: StageFormLayoutConfig = CURRENT_LAYOUT,
    ):
        self.config = config
        self.instance_id = instance_id
        self.layout_config = layout_config
        self.factory = WidgetFactory(config)

    # --- identifiers ---

    def scoped_id(self, name: str) -> str:
        return f"{self.instance_id}--{name}"

    def field_id(self, field_name: str) -> str:
        return self.scoped_id(field_name)

    def helper_id(self, field_name: str) -> str:
        return self.scoped_id(f"{field_name}-helper")

    def error_id(self, field_name: str) -> str:
        return self.scoped_id(f"{field_name}-error")

    def radio_option_id(self, field_name: str, value: Any) -> str:
        return self.scoped_id(f"{field_name}-{radio_option_suffix(value)}")

    # --- pages ---

    def _new_page(self, object_name: str) -> QWidget:
        page = QWidget()
        page.setObjectName(object_name)
        layout = QVBoxLayout(page)
        layout.setContentsMargins(*self.layout_config.page_layout_margins)
        layout.setSpacing(self.layout_config.page_layout_spacing)
        return page

    def build_fields_page(
        self,
        schema: FormSchema,
        state: Mapping[str, Any],
        stage_index: Optional[int],
        generation: RenderGeneration,
        on_commit: FieldCallback,
        on_input: FieldCallback,
    ) -> RenderedPage:
        """Build the page of visible fields for a data stage or a single-stage form."""
        suffix = "form" if stage_index is None else f"stage-{stage_index}"
        with timer(f"build page {suffix}", threshold_ms=10.0):
            page = self._new_page(self.scoped_id(suffix))
            rendered = RenderedPage(widget=page, generation=generation, stage_index=stage_index)
            controllers = controller_field_names(schema)

            for field in fields_for(schema, stage_index):
                if not should_display(field, state):
                    continue
                if field.type.is_plain_text:
                    page.layout().addWidget(self._build_plain_text(field))
                    continue

                control = self._build_field(field, state.get(field.name))
                self._wire(control, controllers, on_commit, on_input)
                rendered.controls[field.name] = control
                page.layout().addWidget(control.wrapper)

            page.layout().addStretch(1)

        logger.debug(f"Built {suffix} with {len(rendered.controls)} control(s) for {generation}")
        return rendered

    def build_summary(
        self,
        schema: FormSchema,
        state: Mapping[str, Any],
        stage_index: int,
        generation: RenderGeneration,
    ) -> RenderedPage:
        page = build_summary_page(schema, state, self.config, self.instance_id, self.layout_config)
        return RenderedPage(widget=page, generation=generation, stage_index=stage_index, is_summary=True)

    def build_alert_page(self, title: Optional[str], message: str, tone: str) -> QWidget:
        """Blocking alert that replaces the form (schema errors)."""
        page = self._new_page(self.scoped_id("alert"))
        alert = QFrame()
        alert.setObjectName(self.scoped_id("schema-error"))
        alert.setProperty("alert", tone)
        alert.setAccessibleName(title or message)
        layout = QVBoxLayout(alert)

        if title:
            heading = QLabel(title)
            heading.setProperty("heading", True)
            layout.addWidget(heading)

        body = QLabel(message)
        body.setObjectName(self.scoped_id("schema-error-message"))
        body.setWordWrap(True)
        body.setTextFormat(Qt.TextFormat.PlainText)
        layout.addWidget(body)

        page.layout().addWidget(alert)
        page.layout().addStretch(1)
        return page

    # --- fields ---

    def _build_plain_text(self, field: Field) -> QWidget:
        block = QWidget()
        block.setObjectName(self.scoped_id(field.name))
        block.setProperty("plainText", True)
        layout = QVBoxLayout(block)
        layout.setContentsMargins(*self.layout_config.field_margins)
        layout.setSpacing(self.layout_config.field_spacing)

        title = field.title if field.title is not None else field.label
        if title:
            heading = QLabel(title)
            heading.setProperty("heading", True)
            heading.setWordWrap(True)
            layout.addWidget(heading)

        if field.text:
            body = QLabel(str(field.text))
            body.setTextFormat(Qt.TextFormat.PlainText)
            body.setWordWrap(True)
            body.setProperty("muted", True)
            layout.addWidget(body)

        return block

    def _label_text(self, field: Field) -> str:
        return f"{field.display_label} *" if field.required else field.display_label

    def _build_field(self, field: Field, value: Any) -> FieldControl:
        wrapper = QWidget()
        wrapper.setProperty("fieldWrapper", field.name)
        layout = QVBoxLayout(wrapper)
        layout.setContentsMargins(*self.layout_config.field_margins)
        layout.setSpacing(self.layout_config.field_spacing)

        control = self.factory.create_widget(field)
        label = None

        if field.type is FieldType.CHECKBOX:
            control.setText(self._label_text(field))
            control.setObjectName(self.field_id(field.name))
            control.setProperty("name", field.name)
            focusables = [control]
            layout.addWidget(control)
        elif field.type is FieldType.RADIO:
            label = QLabel(self._label_text(field))
            label.setObjectName(self.scoped_id(f"{field.name}-label"))
            control.setObjectName(self.scoped_id(f"{field.name}-group"))
            control.setAccessibleName(field.display_label)
            # Scoped group name keeps radio groups of different forms apart
            group_name = self.scoped_id(field.name)
            for option in field.options:
                button = control.add_option(
                    option.value, option.label, self.radio_option_id(field.name, option.value), group_name,
                )
                if field.required:
                    button.setProperty("required", True)
            focusables = control.buttons
            layout.addWidget(label)
            layout.addWidget(control)
        else:
            label = QLabel(self._label_text(field))
            label.setBuddy(control)
            control.setObjectName(self.field_id(field.name))
            control.setProperty("name", field.name)
            control.setAccessibleName(field.display_label)
            focusables = [control]
            layout.addWidget(label)
            layout.addWidget(control)

        SignalService.update_widget_value(control, value)

        helper_label = None
        if field.helper_text:
            helper_label = QLabel(field.helper_text)
            helper_label.setObjectName(self.helper_id(field.name))
            helper_label.setWordWrap(True)
            helper_label.setProperty("muted", True)
            layout.addWidget(helper_label)
            for widget in [control] + focusables:
                widget.setAccessibleDescription(field.helper_text)

        error_label = QLabel()
        error_label.setObjectName(self.error_id(field.name))
        error_label.setProperty("role", "alert")
        error_label.setWordWrap(True)
        error_label.setVisible(False)
        layout.addWidget(error_label)

        for widget in [control] + focusables:
            widget.setProperty("invalid", False)

        return FieldControl(
            field=field,
            wrapper=wrapper,
            control=control,
            focusables=list(focusables),
            error_label=error_label,
            label=label,
            helper_label=helper_label,
        )

    def _wire(
        self,
        control: FieldControl,
        controllers: Set[str],
        on_commit: FieldCallback,
        on_input: FieldCallback,
    ) -> None:
        field = control.field
        widget = control.control
        widget.connect_commit_signal(lambda value, name=field.name: on_commit(name, value))

        # Keystrokes only matter when another field's visibility depends on this one
        if field.name in controllers and field.type.is_text_like and isinstance(widget, InputSignalEmitter):
            widget.connect_input_signal(lambda value, name=field.name: on_input(name, value))
