"""
Module builder state
====================

Client-side editor for a custom module: sections, fields and option lists.

Fields added locally carry a provisional ``new_<n>`` id until the first save
returns the server id. Deleting a provisional field never touches the
network. Saving sends every field (create or update) and then reloads the
module so the server's copy wins.
"""

import itertools
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from csystem.client.api import ApiError, AuthSession, CsystemClient
from csystem.exceptions import UnknownFieldTypeError
from csystem.field_types import parse_field_type

logger = logging.getLogger(__name__)

PROVISIONAL_PREFIX = "new_"

MODULE_KEYS = ("name", "description", "icon", "status", "allowed_roles", "show_in_menu", "menu_category")


@dataclass
class DraftField:
    id: str
    section_name: str
    field_name: str
    field_type: str
    label: str
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    is_required: bool = False
    is_scored: bool = False
    max_score: int = 0
    feedback_good: Optional[str] = None
    feedback_bad: Optional[str] = None
    options: List[Dict[str, str]] = field(default_factory=list)
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    sort_order: int = 0

    @property
    def is_new(self) -> bool:
        return self.id.startswith(PROVISIONAL_PREFIX)

    def to_payload(self) -> Dict[str, Any]:
        body = asdict(self)
        body.pop("id")
        body["options"] = [dict(o) for o in self.options] or None
        if not self.is_scored:
            body["max_score"] = 0
        return body

    @classmethod
    def from_server(cls, data: Dict[str, Any]) -> "DraftField":
        known = {k: data.get(k) for k in cls.__dataclass_fields__ if k in data}
        known["options"] = list(data.get("options") or [])
        known["max_score"] = data.get("max_score") or 0
        known["sort_order"] = data.get("sort_order") or 0
        return cls(**known)


class OptionsEditor:
    """Staging buffer for a field's options; the field changes only on confirm."""

    def __init__(self, target: DraftField):
        self.target = target
        self.buffer: List[Dict[str, str]] = [dict(o) for o in target.options]

    def add(self, label: str, value: Optional[str] = None) -> None:
        label = label.strip()
        if not label:
            return
        self.buffer.append({"label": label, "value": value if value is not None else label.lower().replace(" ", "_")})

    def remove(self, index: int) -> None:
        if 0 <= index < len(self.buffer):
            del self.buffer[index]

    def confirm(self) -> List[Dict[str, str]]:
        self.target.options = [dict(o) for o in self.buffer]
        return self.target.options

    def cancel(self) -> None:
        self.buffer = [dict(o) for o in self.target.options]


class ModuleBuilder:
    def __init__(self, client: CsystemClient, session: AuthSession):
        self.client = client
        self.session = session
        self.module: Optional[Dict[str, Any]] = None
        self.sections: List[str] = []
        self.fields: List[DraftField] = []
        self.is_saving = False
        self.error: Optional[str] = None
        self.conflict: Optional[str] = None
        self._ids = itertools.count(1)

    # --- module ---
    @property
    def module_id(self) -> Optional[str]:
        return self.module["id"] if self.module else None

    async def create_module(self, name: str, **meta) -> bool:
        if not name or not name.strip():
            self.error = "Module name is required"
            return False
        try:
            created = await self.client.modules.create(self.session, dict(meta, name=name))
        except ApiError as exc:
            self.error = exc.message
            return False
        self._apply_module(created)
        return True

    async def load(self, module_id: str) -> bool:
        try:
            data = await self.client.modules.get(self.session, module_id)
        except ApiError as exc:
            self.error = exc.message
            return False
        local_only = [s for s in self.sections if not self.fields_in(s)] if self.module_id == module_id else []
        self._apply_module(data)
        for name in local_only:
            if name not in self.sections:
                self.sections.append(name)
        return True

    def _apply_module(self, data: Dict[str, Any]) -> None:
        self.module = {k: v for k, v in data.items() if k != "sections"}
        self.sections = [s["name"] for s in data.get("sections", [])]
        self.fields = [
            DraftField.from_server(dict(f, section_name=s["name"]))
            for s in data.get("sections", [])
            for f in s.get("fields", [])
        ]
        self.error = None

    def set_module(self, **changes) -> None:
        for key, value in changes.items():
            if key in MODULE_KEYS:
                self.module[key] = value

    # --- sections ---
    def add_section(self, name: str) -> bool:
        name = name.strip()
        if not name or name in self.sections:
            return False
        self.sections.append(name)
        return True

    def remove_section(self, name: str) -> bool:
        """Only empty sections, or sections holding unsaved fields only, can go."""
        if any(not f.is_new for f in self.fields_in(name)):
            self.error = "Delete the saved fields of this section first"
            return False
        self.fields = [f for f in self.fields if f.section_name != name]
        if name in self.sections:
            self.sections.remove(name)
        return True

    def fields_in(self, section_name: str) -> List[DraftField]:
        return sorted((f for f in self.fields if f.section_name == section_name), key=lambda f: f.sort_order)

    # --- fields ---
    def get_field(self, field_id: str) -> Optional[DraftField]:
        return next((f for f in self.fields if f.id == field_id), None)

    def add_field(self, section_name: str, field_name: str, field_type: str, label: str, **meta) -> Optional[DraftField]:
        try:
            parsed = parse_field_type(field_type)
        except UnknownFieldTypeError as exc:
            self.error = exc.message
            return None
        self.add_section(section_name)
        draft = DraftField(
            id=f"{PROVISIONAL_PREFIX}{next(self._ids)}",
            section_name=section_name.strip(),
            field_name=field_name,
            field_type=parsed.value,
            label=label,
            sort_order=len(self.fields_in(section_name.strip())),
            **meta,
        )
        self.fields.append(draft)
        return draft

    def update_field(self, field_id: str, **changes) -> bool:
        draft = self.get_field(field_id)
        if draft is None:
            return False
        if "field_type" in changes:
            try:
                changes["field_type"] = parse_field_type(changes["field_type"]).value
            except UnknownFieldTypeError as exc:
                self.error = exc.message
                return False
        for key, value in changes.items():
            if key != "id" and hasattr(draft, key):
                setattr(draft, key, value)
        if draft.section_name not in self.sections:
            self.sections.append(draft.section_name)
        return True

    def edit_options(self, field_id: str) -> Optional[OptionsEditor]:
        draft = self.get_field(field_id)
        return OptionsEditor(draft) if draft else None

    async def delete_field(self, field_id: str) -> bool:
        draft = self.get_field(field_id)
        if draft is None:
            return False
        if not draft.is_new:
            try:
                await self.client.modules.delete_field(self.session, self.module_id, draft.id)
            except ApiError as exc:
                self.error = exc.message
                return False
        self.fields.remove(draft)
        return True

    # --- persistence ---
    async def save(self) -> bool:
        if self.module is None or self.is_saving:
            return False
        self.is_saving = True
        self.conflict = None
        try:
            meta = {k: self.module.get(k) for k in MODULE_KEYS if k in self.module}
            await self.client.modules.update(self.session, self.module_id, meta)
            for section in self.sections:
                for draft in self.fields_in(section):
                    await self._save_field(draft)
        except ApiError as exc:
            if exc.is_conflict:
                self.conflict = exc.message
            self.error = exc.message
            logger.warning(f"Saving module {self.module_id} stopped: {exc}")
            return False
        finally:
            self.is_saving = False

        logger.info(f"Module {self.module_id} saved ({len(self.fields)} fields)")
        return await self.load(self.module_id)

    async def _save_field(self, draft: DraftField) -> None:
        if draft.is_new:
            saved = await self.client.modules.add_field(self.session, self.module_id, draft.to_payload())
            draft.id = saved["id"]
        else:
            await self.client.modules.update_field(self.session, self.module_id, draft.id, draft.to_payload())
