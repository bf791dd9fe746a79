"""
Stage form manager: the stateful rendering engine.

Owns the form state for one schema, renders one stage at a time and wires
every user interaction back through the FieldChangeDispatcher:

    edit -> state mutation -> prune hidden values -> save draft
         -> (immediate or debounced) re-render -> focus restoration
         -> announcement on stage change

All state lives on the GUI thread. The only asynchronous boundary is the
submission policy, which runs on a BackgroundTask unless the config asks
for synchronous submission.
"""

import itertools
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from PyQt6.QtCore import QTimer, pyqtSignal
from PyQt6.QtWidgets import QLabel, QMessageBox, QScrollArea, QVBoxLayout, QWidget

from pyqt_stageform.core.background_task import BackgroundTaskManager
from pyqt_stageform.core.debounce_timer import KeyedDebounceScheduler
from pyqt_stageform.core.performance_monitor import timer
from pyqt_stageform.protocols.form_config import StageFormConfig, get_form_config
from pyqt_stageform.protocols.form_policy import DraftSnapshot, FormPolicies, SubmissionResult
from pyqt_stageform.schema.loader import load_schema_file, parse_schema
from pyqt_stageform.schema.model import FormSchema, FormState, SchemaError
from pyqt_stageform.schema.queries import (
    fields_for, find_stage_index_for_field, is_multi_stage, is_plain_text, visible_fields,
)
from pyqt_stageform.schema.visibility import prune_hidden
from pyqt_stageform.services.field_change_dispatcher import (
    ChangeKind, FieldChangeDispatcher, FieldChangeEvent,
)
from pyqt_stageform.services.flag_context_manager import FlagContextManager, ManagerFlag
from .focus import FocusContinuityManager, FocusTarget
from .form_controls import FormControls, SubmitFeedback
from .layout_constants import CURRENT_LAYOUT, StageFormLayoutConfig
from .navigation import NavigationState
from .stage_indicator import StageIndicator
from .stage_renderer import RenderedPage, RenderGeneration, StagePageBuilder

logger = logging.getLogger(__name__)

_instance_counter = itertools.count(1)


@dataclass
class FormManagerConfig:
    """
    Configuration for StageFormManager initialization.

    Attributes:
        parent: Parent widget
        config: Engine configuration; the global config when None
        instance_id: Prefix of every object name the engine creates. Must be
            unique per window so two forms never share identifiers
        policies: Validation, draft and submission policies
        layout_config: Spacing and margins
        color_scheme: Theme used for the form stylesheet; None keeps the
            application style
        use_scroll_area: Host stage pages in a scroll area
    """
    parent: Optional[QWidget] = None
    config: Optional[StageFormConfig] = None
    instance_id: Optional[str] = None
    policies: Optional[FormPolicies] = None
    layout_config: StageFormLayoutConfig = CURRENT_LAYOUT
    color_scheme: Optional[Any] = None
    use_scroll_area: bool = False


class StageFormManager(QWidget):
    """
    Multi-stage form engine widget.

    Regions, top to bottom: stage indicator, stage page, submit feedback,
    navigation controls and a live region for announcements.
    """

    state_changed = pyqtSignal(str, object)     # field_name, value
    stage_changed = pyqtSignal(int)             # new current stage
    submitted = pyqtSignal(dict)                # payload accepted by the policy
    submission_failed = pyqtSignal(str)         # feedback message
    announcement = pyqtSignal(str)              # text written to the live region

    def __init__(self, manager_config: Optional[FormManagerConfig] = None):
        manager_config = manager_config or FormManagerConfig()
        policies = manager_config.policies if manager_config.policies is not None else FormPolicies()
        if not isinstance(policies, FormPolicies):
            raise TypeError(f"policies must be a FormPolicies, got {type(policies).__name__}")

        QWidget.__init__(self, manager_config.parent)

        # Flags (all registered ManagerFlag values must exist before first use)
        self._rendering = False
        self._is_submitting = False
        self._loading_schema = False
        self._dispatching = False

        self.config = manager_config.config or get_form_config()
        self.instance_id = manager_config.instance_id or f"stage-form-{next(_instance_counter)}"
        self.policies = policies
        self.layout_config = manager_config.layout_config
        self.color_scheme = manager_config.color_scheme
        self.setObjectName(self.instance_id)

        self._schema: Optional[FormSchema] = None
        self._state: FormState = {}
        self._page: Optional[RenderedPage] = None
        self._generation = RenderGeneration(0)
        self.navigation = NavigationState()
        self.builder = StagePageBuilder(self.config, self.instance_id, self.layout_config)

        self._dispatcher = FieldChangeDispatcher.instance()
        self._debounce = KeyedDebounceScheduler(self.config.render_debounce_ms)
        self._task_manager = BackgroundTaskManager()
        self._submission_token = 0

        self._announce_timer = QTimer(self)
        self._announce_timer.setSingleShot(True)
        self._announce_timer.timeout.connect(self._flush_announcement)
        self._pending_announcement = ""

        with timer(f"StageFormManager.__init__ ({self.instance_id})", threshold_ms=5.0):
            self.setup_ui(manager_config.use_scroll_area)

        self.focus_manager = FocusContinuityManager(
            owner=self,
            scopes=lambda: [self.page_host, self.controls],
            candidates=self._focus_candidates,
            is_suspended=lambda: self._rendering,
        )

    # ========== UI SETUP ==========

    def setup_ui(self, use_scroll_area: bool = False):
        """Create the engine regions."""
        layout = QVBoxLayout(self)
        layout.setSpacing(self.layout_config.main_layout_spacing)
        layout.setContentsMargins(*self.layout_config.main_layout_margins)

        if self.color_scheme is not None:
            from pyqt_stageform.theming.style_generator import StyleSheetGenerator
            self.setStyleSheet(StyleSheetGenerator(self.color_scheme).generate_form_style())

        self.indicator = StageIndicator(self.instance_id, self.config, self.layout_config, self)
        self.indicator.step_clicked.connect(self.jump_to)
        layout.addWidget(self.indicator)

        self.page_host = QWidget()
        self.page_host.setObjectName(f"{self.instance_id}--container")
        self._page_layout = QVBoxLayout(self.page_host)
        self._page_layout.setContentsMargins(0, 0, 0, 0)

        if use_scroll_area:
            scroll_area = QScrollArea()
            scroll_area.setWidgetResizable(True)
            scroll_area.setWidget(self.page_host)
            layout.addWidget(scroll_area, 1)
        else:
            layout.addWidget(self.page_host, 1)

        self.feedback = SubmitFeedback(self.instance_id, self)
        layout.addWidget(self.feedback)

        self.controls = FormControls(self.instance_id, self.config, self.layout_config, self)
        self.controls.prev_requested.connect(self.go_previous)
        self.controls.next_requested.connect(self.go_next)
        self.controls.submit_requested.connect(self.submit)
        self.controls.reset_requested.connect(self.request_reset)
        self.controls.setVisible(False)
        layout.addWidget(self.controls)

        self.live_region = QLabel()
        self.live_region.setObjectName(f"{self.instance_id}--live-region")
        self.live_region.setProperty("liveRegion", True)
        self.live_region.setAccessibleName("Status")
        layout.addWidget(self.live_region)

    def _focus_candidates(self) -> List[QWidget]:
        page_focusables = self._page.focusables if self._page is not None else []
        return page_focusables + self.controls.buttons

    # ========== PROPERTIES ==========

    @property
    def schema(self) -> Optional[FormSchema]:
        return self._schema

    @property
    def state(self) -> FormState:
        """Copy of the current form state."""
        return dict(self._state)

    @property
    def current_stage(self) -> int:
        return self.navigation.current_stage

    @property
    def page(self) -> Optional[RenderedPage]:
        return self._page

    @property
    def is_submitting(self) -> bool:
        return self._is_submitting

    @property
    def generation(self) -> RenderGeneration:
        return self._generation

    # ========== SCHEMA LOADING ==========

    def load_schema(self, schema: Union[FormSchema, Mapping[str, Any]], restore_draft: bool = False) -> bool:
        """
        Replace the schema and all state, then render the first stage.

        Reloading the same schema starts over as well. A draft saved for
        the schema id is restored only when restore_draft is True.
        Malformed schemas are shown as a blocking error instead of a form.

        Returns:
            True if the schema was loaded
        """
        with FlagContextManager.manage_flags(self, **{ManagerFlag.LOADING_SCHEMA.value: True}):
            self._debounce.cancel_all()
            self._cancel_submission()

            try:
                parsed = parse_schema(schema)
            except SchemaError as e:
                logger.warning(f"Rejected schema: {e}")
                self._reject_schema(e)
                return False

            self._schema = parsed
            self._state = {}
            self.navigation.reset(parsed)
            self.focus_manager.forget()
            self.feedback.clear()

            start_stage = self._restore_draft(parsed) if restore_draft else 0
            prune_hidden(parsed, self._state)
            self.navigation.go_to(start_stage)

        logger.info(f"Loaded schema '{parsed.id}' ({self.navigation.layout.stage_count} stage(s))")
        self.render_stage(self.navigation.current_stage)
        return True

    def load_schema_file(self, path: Union[str, Path], restore_draft: bool = False) -> bool:
        """Load a JSON schema file. Malformed files show the schema error."""
        try:
            parsed = load_schema_file(path)
        except SchemaError as e:
            logger.warning(f"Rejected schema file {path}: {e}")
            self._debounce.cancel_all()
            self._cancel_submission()
            self._reject_schema(e)
            return False
        return self.load_schema(parsed, restore_draft=restore_draft)

    def _reject_schema(self, error: SchemaError) -> None:
        self._schema = None
        self._state = {}
        self.navigation.reset(FormSchema(id=""))
        self.display_schema_error(str(error))

    def _restore_draft(self, schema: FormSchema) -> int:
        """Seed state from a saved draft. Returns the stage to start on."""
        snapshot = self.policies.drafts.load_draft(schema.id)
        if snapshot is None or snapshot.schema_id != schema.id:
            return 0

        known = {field.name for field in fields_for(schema) if not is_plain_text(field)}
        dropped = sorted(set(snapshot.state) - known)
        if dropped:
            logger.debug(f"Dropping unknown draft fields: {dropped}")
        self._state = {name: value for name, value in snapshot.state.items() if name in known}

        logger.info(f"Restored draft for '{schema.id}' ({len(self._state)} value(s), stage {snapshot.current_stage})")
        return self.navigation.clamp(snapshot.current_stage)

    # ========== ERROR PAGES ==========

    def display_schema_error(self, message: str) -> None:
        """Replace the form with a blocking error alert and hide the controls."""
        self._show_alert(self.config.schema_error_title, message, "danger")

    def show_error(self, message: str) -> None:
        """Preview variant of the blocking alert: warning tone, no title."""
        self._show_alert(None, message, "warning")

    def _show_alert(self, title: Optional[str], message: str, tone: str) -> None:
        logger.error(f"Form unavailable: {message}")
        self._debounce.cancel_all()
        with FlagContextManager.rendering_context(self):
            self._generation = self._generation.advance()
            widget = self.builder.build_alert_page(title, message, tone)
            self._swap_page(RenderedPage(widget=widget, generation=self._generation))
            self.feedback.clear()
            self.indicator.clear()
            self.controls.setVisible(False)
        self.focus_manager.forget()

    # ========== RENDERING ==========

    def render_stage(
        self,
        stage_index: Optional[int] = None,
        focus_on_change: bool = False,
        restore_focus_target: Optional[FocusTarget] = None,
    ) -> None:
        """
        Rebuild the page for stage_index (the current stage when None).

        A re-render of the same stage restores focus to restore_focus_target
        when no focus change happened since it was captured. A stage change
        forgets the last focus target, optionally focuses the first control
        and announces the new stage.
        """
        schema = self._schema
        if schema is None:
            logger.debug("render_stage called without a schema")
            return

        self.feedback.clear()
        prune_hidden(schema, self._state)

        target_index = self.navigation.current_stage if stage_index is None else stage_index
        changed = self.navigation.go_to(target_index)
        current = self.navigation.current_stage

        with timer(f"render stage {current}", threshold_ms=16.0):
            with FlagContextManager.rendering_context(self):
                self._generation = self._generation.advance()
                page = self._build_page(schema, current)
                self._swap_page(page)
                page.show_errors({}, self.config.required_message)
                page.widget.setEnabled(not self._is_submitting)
                self.indicator.update_for(schema, self.navigation)
                self.controls.apply(self.navigation.controls())
                self.controls.setVisible(True)

        logger.debug(f"Rendered stage {current} ({self.navigation!r}, {self._generation!r})")

        if not changed:
            self.focus_manager.restore_after_render(restore_focus_target)
            return

        self.focus_manager.forget()
        if focus_on_change:
            self.focus_manager.focus_first()
        self.stage_changed.emit(current)
        self.announce(self._stage_announcement(current))

    def _build_page(self, schema: FormSchema, current: int) -> RenderedPage:
        generation = self._generation
        if self.navigation.is_summary(current):
            return self.builder.build_summary(schema, self._state, current, generation)

        stage_index = current if is_multi_stage(schema) else None

        def on_commit(field_name: str, value: Any) -> None:
            self._dispatcher.dispatch(FieldChangeEvent(
                field_name, value, self, generation, stage_index, ChangeKind.COMMIT,
            ))

        def on_input(field_name: str, value: Any) -> None:
            self._dispatcher.dispatch(FieldChangeEvent(
                field_name, value, self, generation, stage_index, ChangeKind.INPUT,
            ))

        return self.builder.build_fields_page(schema, self._state, stage_index, generation, on_commit, on_input)

    def _swap_page(self, page: RenderedPage) -> None:
        """Install page and dispose of the previous one. Call inside rendering_context."""
        old = self._page
        self._page = page
        if old is not None:
            old.generation.invalidate()
            old.widget.hide()
            self._page_layout.removeWidget(old.widget)
            old.widget.setParent(None)
            old.widget.deleteLater()
        self._page_layout.addWidget(page.widget)
        page.widget.show()

    def _stage_announcement(self, index: int) -> str:
        stage = self._schema.stages[index]
        label = stage.label if stage.label is not None else self.config.stage_label(index)
        return f"{self.config.stage_count(index, self.navigation.layout.stage_count)} - {label}"

    # ========== FIELD CHANGES (called by FieldChangeDispatcher) ==========

    def apply_field_value(self, field_name: str, value: Any) -> None:
        """Store value, prune values that became hidden and save a draft."""
        self._state[field_name] = value
        prune_hidden(self._schema, self._state)
        self._save_draft()
        self.state_changed.emit(field_name, value)

    def cancel_pending_render(self, field_name: str) -> bool:
        return self._debounce.cancel(field_name)

    def schedule_render(
        self,
        field_name: str,
        stage_index: Optional[int],
        focus_target: Optional[FocusTarget] = None,
    ) -> None:
        """Re-render after the debounce delay unless the field is edited again first."""
        self._debounce.schedule(
            field_name,
            lambda: self.render_stage(stage_index, restore_focus_target=focus_target),
        )

    def pending_renders(self) -> List[str]:
        return self._debounce.pending_keys()

    def _save_draft(self) -> None:
        if self._schema is None or self._loading_schema:
            return
        self.policies.drafts.save_draft(DraftSnapshot(
            schema_id=self._schema.id,
            state=dict(self._state),
            current_stage=self.navigation.current_stage,
        ))

    # ========== NAVIGATION ==========

    def go_previous(self) -> None:
        if self._schema is None or not is_multi_stage(self._schema):
            return
        self.render_stage(self.navigation.previous_index(), focus_on_change=True)

    def go_next(self) -> bool:
        """Validate the current stage and advance. Returns True if the stage changed."""
        if self._schema is None or not is_multi_stage(self._schema):
            return False

        errors = self.policies.validation.validate_stage(self._schema, self._state, self.navigation.current_stage)
        if errors:
            self.show_errors(errors)
            return False

        self.render_stage(self.navigation.next_index(), focus_on_change=True)
        return True

    def jump_to(self, index: int) -> bool:
        """Stage indicator jump. Only unlocked stages are reachable."""
        if self._schema is None or not self.navigation.can_jump_to(index):
            logger.warning(f"Rejected jump to stage {index} ({self.navigation!r})")
            return False
        self.render_stage(index, focus_on_change=True)
        return True

    def show_errors(self, errors: Mapping[str, str]) -> List[str]:
        """Show field errors on the current page. Returns the fields that could display one."""
        if self._page is None:
            return []
        shown = self._page.show_errors(errors, self.config.required_message)
        if errors:
            logger.debug(f"Showing errors for {shown} (requested {sorted(errors)})")
        return shown

    def first_error_stage(self, errors: Mapping[str, str]) -> Optional[int]:
        """Earliest stage declaring one of the invalid fields, None for single-stage forms."""
        if self._schema is None or not is_multi_stage(self._schema):
            return None
        indices = [find_stage_index_for_field(self._schema, name) for name in errors]
        indices = [index for index in indices if index != -1]
        return min(indices) if indices else None

    # ========== SUBMISSION ==========

    def build_payload(self) -> Dict[str, Any]:
        """Values of every visible field that has one, in schema order."""
        if self._schema is None:
            return {}
        return {
            field.name: self._state[field.name]
            for field in visible_fields(self._schema, self._state)
            if field.name in self._state
        }

    def submit(self) -> bool:
        """
        Validate and hand the payload to the submission policy.

        Returns:
            True if the policy was called (its outcome arrives later when it
            runs in the background)
        """
        if self._schema is None or self._is_submitting:
            return False

        self.feedback.clear()
        validation = self.policies.validation

        if is_multi_stage(self._schema):
            stage_errors = validation.validate_stage(self._schema, self._state, self.navigation.current_stage)
            if stage_errors:
                self.show_errors(stage_errors)
                return False

        prune_hidden(self._schema, self._state)
        errors = validation.validate_stage(self._schema, self._state, None)
        if errors:
            first_error_stage = self.first_error_stage(errors)
            if first_error_stage is not None and first_error_stage != self.navigation.current_stage:
                self.render_stage(first_error_stage, focus_on_change=True)
            self.show_errors(errors)
            return False

        payload = self.build_payload()
        self._submission_token += 1
        token = self._submission_token
        self._set_submitting(True)
        logger.info(f"Submitting '{self._schema.id}' with {len(payload)} field(s)")

        if self.config.background_submission:
            self._task_manager.run(
                target=self.policies.submission.submit,
                args=(payload,),
                on_success=lambda result: self._on_submit_result(token, payload, result),
                on_error=lambda error: self._on_submit_error(token, error),
                label=f"submit '{self._schema.id}'",
            )
            return True

        try:
            result = self.policies.submission.submit(payload)
        except Exception as e:
            self._on_submit_error(token, e)
        else:
            self._on_submit_result(token, payload, result)
        return True

    def _is_current_submission(self, token: int) -> bool:
        if token != self._submission_token:
            logger.debug(f"Ignoring outcome of abandoned submission #{token}")
            return False
        return True

    def _on_submit_result(self, token: int, payload: Dict[str, Any], result: Any) -> None:
        if not self._is_current_submission(token):
            return
        self._set_submitting(False)
        outcome = SubmissionResult.coerce(result)

        if outcome.success:
            logger.info(f"Submission of '{self._schema.id}' accepted")
            self.feedback.show_message("success", outcome.message or self.config.submit_success_message)
            self.policies.drafts.clear_draft(self._schema.id)
            self.submitted.emit(payload)
            return

        message = outcome.message or self.config.submit_failure_message
        logger.warning(f"Submission of '{self._schema.id}' rejected: {message}")
        self.feedback.show_message("danger", message)
        self.submission_failed.emit(message)

    def _on_submit_error(self, token: int, error: Exception) -> None:
        if not self._is_current_submission(token):
            return
        self._set_submitting(False)
        logger.exception("Submission policy raised", exc_info=error)
        message = self.config.submit_failure_message
        self.feedback.show_message("danger", message)
        self.submission_failed.emit(message)

    def _set_submitting(self, submitting: bool) -> None:
        """Busy state: every interactive control is disabled while a submission runs."""
        self._is_submitting = submitting
        self.controls.set_busy(submitting)
        self.indicator.setEnabled(not submitting)
        if self._page is not None:
            self._page.widget.setEnabled(not submitting)

    def _cancel_submission(self) -> None:
        """Abandon any outstanding submission so its outcome is never applied."""
        self._submission_token += 1
        self._task_manager.cleanup()
        if self._is_submitting:
            logger.debug("Abandoning outstanding submission")
            self._set_submitting(False)

    # ========== RESET ==========

    def request_reset(self) -> None:
        """Reset button handler: asks for confirmation when configured to."""
        if self.config.confirm_reset:
            answer = QMessageBox.question(
                self,
                self.config.reset_label,
                self.config.reset_confirmation,
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
                QMessageBox.StandardButton.No,
            )
            if answer != QMessageBox.StandardButton.Yes:
                return
        self.reset()

    def reset(self) -> None:
        """Clear state and draft, return to the first stage and announce it."""
        if self._schema is None:
            return

        self._debounce.cancel_all()
        self._cancel_submission()
        self._state.clear()
        self.policies.drafts.clear_draft(self._schema.id)
        self.feedback.clear()
        self.navigation.reset()
        logger.info(f"Reset form '{self._schema.id}'")
        self.render_stage(0, focus_on_change=True)
        self.announce(self.config.reset_announcement)

    # ========== ANNOUNCEMENTS ==========

    def announce(self, message: str) -> None:
        """Clear the live region, then write message after a short delay."""
        self.live_region.clear()
        self._pending_announcement = message
        self._announce_timer.start(self.config.announce_delay_ms)

    def _flush_announcement(self) -> None:
        message = self._pending_announcement
        self.live_region.setText(message)
        self.announcement.emit(message)
        logger.debug(f"Announced: {message}")

    # ========== QT OVERRIDES ==========

    def focusNextPrevChild(self, next: bool) -> bool:
        """Tab and Shift+Tab wrap around inside the form."""
        if not self._rendering and self.focus_manager.cycle(next):
            return True
        return super().focusNextPrevChild(next)

    def closeEvent(self, event):
        self._debounce.cancel_all()
        self._announce_timer.stop()
        self._cancel_submission()
        super().closeEvent(event)
