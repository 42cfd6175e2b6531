"""Read-only lookup facade over the model and option catalog."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from homebuild.domain import CatalogModel, Option, OptionGroup, OptionId

from . import data
from .exceptions import CatalogError, ModelNotFoundError, OptionNotFoundError


class CatalogService:
    """Lookup registry for models, options and packages."""

    def __init__(
        self,
        models: Iterable[CatalogModel],
        option_groups: Iterable[OptionGroup],
    ) -> None:
        self._models: dict[str, CatalogModel] = {}
        for model in models:
            if model.id in self._models:
                msg = f"Model {model.id} is defined more than once"
                raise CatalogError(msg)
            self._models[model.id] = model

        self._groups = tuple(option_groups)
        self._options: dict[str, Option] = {}
        for group in self._groups:
            for option in group.options:
                if option.id in self._options:
                    msg = f"Option {option.id} is defined more than once"
                    raise CatalogError(msg)
                self._options[option.id] = option.model_copy(update={"group": group.subject})

    @classmethod
    def from_data(
        cls,
        models: Sequence[Mapping[str, Any]],
        option_groups: Sequence[Mapping[str, Any]],
    ) -> CatalogService:
        try:
            parsed_models = [CatalogModel.model_validate(item) for item in models]
            parsed_groups = [OptionGroup.model_validate(item) for item in option_groups]
        except ValidationError as exc:
            msg = "Catalog data failed validation"
            raise CatalogError(msg) from exc
        return cls(parsed_models, parsed_groups)

    @classmethod
    def from_json(cls, path: Path) -> CatalogService:
        """Load a served catalog exported as ``{"models": [...], "option_groups": [...]}``."""

        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            msg = f"Unable to read catalog file {path}"
            raise CatalogError(msg) from exc
        if not isinstance(payload, dict):
            msg = f"Catalog file {path} must contain a JSON object"
            raise CatalogError(msg)
        return cls.from_data(payload.get("models", []), payload.get("option_groups", []))

    @classmethod
    def default(cls) -> CatalogService:
        return cls.from_data(data.MODELS, data.OPTION_GROUPS)

    def list_models(self) -> tuple[CatalogModel, ...]:
        return tuple(self._models.values())

    def option_groups(self) -> tuple[OptionGroup, ...]:
        return self._groups

    def find_model(self, model_id: str) -> CatalogModel | None:
        return self._models.get(model_id)

    def get_model(self, model_id: str) -> CatalogModel:
        try:
            return self._models[model_id]
        except KeyError as exc:
            msg = f"Model {model_id} not found"
            raise ModelNotFoundError(msg) from exc

    def get_option(self, option_id: str) -> Option:
        try:
            return self._options[option_id]
        except KeyError as exc:
            msg = f"Option {option_id} not found"
            raise OptionNotFoundError(msg) from exc

    def resolve_options(
        self,
        option_ids: Iterable[str],
        *,
        model: CatalogModel | None = None,
    ) -> tuple[tuple[Option, ...], tuple[OptionId, ...]]:
        """Return known options plus the ids that are missing from the catalog.

        With ``model`` given, options that model does not offer count as missing.
        """

        found: list[Option] = []
        missing: list[OptionId] = []
        for option_id in option_ids:
            option = self._options.get(option_id)
            if option is None or (model is not None and not model.offers_option(option_id)):
                missing.append(OptionId(option_id))
            else:
                found.append(option)
        return tuple(found), tuple(missing)


__all__ = ["CatalogService"]
