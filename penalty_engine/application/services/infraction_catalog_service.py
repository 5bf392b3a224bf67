"""Infraction catalog service.

Owns the per-program catalog of infraction definitions: creation and
partial updates, activation, deletion of custom entries, listing, and
seeding programs from the system defaults.

System-default entries (is_custom=False) can be deactivated but never
deleted. Cloning copies every system default into a program as a
custom-flagged entry the program can then edit.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional
from uuid import UUID

from penalty_engine.application.ports.infraction_repository import (
    InfractionDefinitionRepositoryProtocol,
)
from penalty_engine.application.ports.time_authority import TimeAuthorityProtocol
from penalty_engine.application.services.base import LoggingMixin
from penalty_engine.config.penalty_config import (
    DEFAULT_PENALTY_ENGINE_CONFIG,
    PenaltyEngineConfig,
)
from penalty_engine.domain.errors.lifecycle import (
    InactiveInfractionDefinitionError,
    SystemDefaultDeletionError,
)
from penalty_engine.domain.errors.not_found import InfractionDefinitionNotFoundError
from penalty_engine.domain.models.infraction import (
    DEFAULT_INFRACTIONS,
    InfractionDefinition,
    InfractionDefinitionUpdate,
    InfractionKind,
)
from penalty_engine.domain.models.penalty_outcomes import InfractionCatalogStats
from penalty_engine.domain.models.severity import SeverityLevel

# Upper bounds of the point buckets reported in catalog statistics
_POINT_BUCKETS: tuple[tuple[str, int], ...] = (
    ("low", 10),
    ("medium", 25),
    ("high", 50),
)


class InfractionCatalogService(LoggingMixin):
    """Manages infraction definitions per program."""

    def __init__(
        self,
        repository: InfractionDefinitionRepositoryProtocol,
        time_authority: TimeAuthorityProtocol,
        config: PenaltyEngineConfig = DEFAULT_PENALTY_ENGINE_CONFIG,
    ) -> None:
        self._repository = repository
        self._time = time_authority
        self._config = config
        self._init_logger()

    async def create_definition(
        self,
        *,
        program_id: str,
        kind: InfractionKind,
        name: str,
        description: str,
        severity: SeverityLevel,
        penalty_points: int,
        is_custom: bool = True,
    ) -> InfractionDefinition:
        """Create and store a definition.

        Raises:
            PenaltyValidationError: If any field is invalid. Nothing is written.
        """
        log = self._log_operation("create_definition", program_id=program_id, kind=kind.value)
        definition = InfractionDefinition.create(
            program_id=program_id,
            kind=kind,
            name=name,
            description=description,
            severity=severity,
            penalty_points=penalty_points,
            now=self._time.now(),
            is_custom=is_custom,
        )
        stored = await self._repository.create(definition)
        log.info("infraction_definition_created", definition_id=str(stored.definition_id))
        return stored

    async def get_definition(self, definition_id: UUID) -> InfractionDefinition:
        """Return a definition.

        Raises:
            InfractionDefinitionNotFoundError: If it does not exist.
        """
        definition = await self._repository.get_by_id(definition_id)
        if definition is None:
            raise InfractionDefinitionNotFoundError(definition_id)
        return definition

    async def update_definition(
        self, definition_id: UUID, update: InfractionDefinitionUpdate
    ) -> InfractionDefinition:
        """Apply a partial update; the merged definition is re-validated.

        Raises:
            InfractionDefinitionNotFoundError: If it does not exist.
            PenaltyValidationError: If the merged definition is invalid.
        """
        log = self._log_operation("update_definition", definition_id=str(definition_id))
        current = await self.get_definition(definition_id)
        if update.is_empty:
            return current
        updated = current.apply_update(update, self._time.now())
        stored = await self._repository.update(updated)
        log.info("infraction_definition_updated")
        return stored

    async def activate_definition(self, definition_id: UUID) -> InfractionDefinition:
        current = await self.get_definition(definition_id)
        stored = await self._repository.update(current.activate(self._time.now()))
        self._log_operation(
            "activate_definition", definition_id=str(definition_id)
        ).info("infraction_definition_activated")
        return stored

    async def deactivate_definition(self, definition_id: UUID) -> InfractionDefinition:
        current = await self.get_definition(definition_id)
        stored = await self._repository.update(current.deactivate(self._time.now()))
        self._log_operation(
            "deactivate_definition", definition_id=str(definition_id)
        ).info("infraction_definition_deactivated")
        return stored

    async def delete_definition(self, definition_id: UUID) -> None:
        """Delete a custom definition.

        Raises:
            InfractionDefinitionNotFoundError: If it does not exist.
            SystemDefaultDeletionError: If it is a system default.
        """
        log = self._log_operation("delete_definition", definition_id=str(definition_id))
        definition = await self.get_definition(definition_id)
        if not definition.can_be_deleted:
            log.warning("system_default_deletion_rejected")
            raise SystemDefaultDeletionError(definition_id, "infraction definition")
        await self._repository.delete(definition_id)
        log.info("infraction_definition_deleted")

    async def list_by_program(
        self,
        program_id: str,
        *,
        is_active: Optional[bool] = None,
        is_custom: Optional[bool] = None,
    ) -> list[InfractionDefinition]:
        return await self._repository.list_by_program(
            program_id, is_active=is_active, is_custom=is_custom
        )

    async def list_active(self, program_id: str) -> list[InfractionDefinition]:
        return await self._repository.list_by_program(program_id, is_active=True)

    async def list_by_point_range(
        self, program_id: str, min_points: int, max_points: int
    ) -> list[InfractionDefinition]:
        definitions = await self._repository.list_by_program(program_id)
        return [d for d in definitions if d.has_points_between(min_points, max_points)]

    async def install_system_defaults(
        self, program_id: Optional[str] = None
    ) -> list[InfractionDefinition]:
        """Seed the default table as system-default entries.

        Kinds that already have a definition in the program are skipped,
        so installing twice is harmless. The custom kind is not a system
        default and is never installed.
        """
        target = program_id or self._config.system_program_id
        log = self._log_operation("install_system_defaults", program_id=target)
        now = self._time.now()
        installed: list[InfractionDefinition] = []
        for kind in DEFAULT_INFRACTIONS:
            if not kind.is_system_kind:
                continue
            if await self._repository.get_by_program_and_kind(target, kind) is not None:
                continue
            definition = InfractionDefinition.from_defaults(
                program_id=target, kind=kind, now=now
            )
            installed.append(await self._repository.create(definition))
        log.info("infraction_defaults_installed", installed_count=len(installed))
        return installed

    async def clone_system_defaults(self, program_id: str) -> list[InfractionDefinition]:
        """Copy every system-default definition into ``program_id`` as custom entries.

        Kinds the program already defines are left alone, so cloning twice
        adds nothing the second time.
        """
        log = self._log_operation("clone_system_defaults", program_id=program_id)
        now = self._time.now()
        defaults = await self._repository.list_by_program(
            self._config.system_program_id, is_custom=False
        )
        defined = {d.kind for d in await self._repository.list_by_program(program_id)}
        cloned = [
            await self._repository.create(d.clone_for_program(program_id, now))
            for d in defaults
            if d.kind not in defined
        ]
        log.info(
            "infraction_defaults_cloned",
            cloned_count=len(cloned),
            skipped_count=len(defaults) - len(cloned),
        )
        return cloned

    async def resolve_for_infraction(
        self, program_id: str, kind: InfractionKind
    ) -> tuple[InfractionDefinition, bool]:
        """Find the definition that governs a reported infraction.

        Lookup order: the program's own definition, then the system-default
        entry, then (for system kinds only) the built-in default values.

        Returns:
            The definition scoped to ``program_id`` and whether it refers to
            a stored catalog row.

        Raises:
            InfractionDefinitionNotFoundError: For a custom kind the program
                has not defined.
            InactiveInfractionDefinitionError: If the governing definition is
                deactivated.
        """
        definition = await self._repository.get_by_program_and_kind(program_id, kind)
        persisted = definition is not None
        if definition is None and program_id != self._config.system_program_id:
            definition = await self._repository.get_by_program_and_kind(
                self._config.system_program_id, kind
            )
            persisted = definition is not None
            if definition is not None:
                definition = replace(definition, program_id=program_id)
        if definition is None:
            if not kind.is_system_kind:
                raise InfractionDefinitionNotFoundError(
                    message=f"No custom infraction definition for program {program_id}"
                )
            definition = InfractionDefinition.from_defaults(
                program_id=program_id, kind=kind, now=self._time.now()
            )
        if not definition.is_active:
            raise InactiveInfractionDefinitionError(program_id, kind.value)
        return definition, persisted

    async def get_statistics(self, program_id: str) -> InfractionCatalogStats:
        definitions = await self._repository.list_by_program(program_id)
        total = len(definitions)
        active = sum(1 for d in definitions if d.is_active)
        custom = sum(1 for d in definitions if d.is_custom)
        distribution = {name: 0 for name, _ in _POINT_BUCKETS}
        distribution["critical"] = 0
        for definition in definitions:
            distribution[_bucket_for(definition.penalty_points)] += 1
        average = (
            sum(d.penalty_points for d in definitions) / total if total else 0.0
        )
        return InfractionCatalogStats(
            total=total,
            active=active,
            inactive=total - active,
            system_defaults=total - custom,
            custom=custom,
            average_points=round(average, 2),
            points_distribution=distribution,
        )


def _bucket_for(points: int) -> str:
    for name, upper in _POINT_BUCKETS:
        if points <= upper:
            return name
    return "critical"
