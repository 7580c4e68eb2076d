"""
Definition Registry for graphcast.

Collects declarations from a parsed document, partitioned by kind and
keyed by name. The registry is populated before the first schema build
and frozen afterwards.

Example:
    registry = DefinitionRegistry()
    registry.ingest(parse_document(sdl))

    registry.objects["Query"]        # ObjectDeclaration
    registry.extensions_for("Query") # extension fields, in document order
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from graphql.language import DocumentNode, FieldDefinitionNode

from .declarations import (
    Declaration,
    DeclarationKind,
    DirectiveDeclaration,
    EnumDeclaration,
    InputObjectDeclaration,
    ObjectDeclaration,
    ScalarDeclaration,
    SchemaDeclaration,
    TypeExtension,
    UnionDeclaration,
    collect_declarations,
)
from .errors import DuplicateDeclaration, RegistryFrozen, SchemaAlreadyDefined

logger = logging.getLogger(__name__)


class DefinitionRegistry:
    """
    Registry of named declarations.

    Duplicates within a kind are rejected. Names are not checked across
    kinds here; the materializer reports cross-kind collisions once the
    whole document is known.
    """

    def __init__(self) -> None:
        self._by_kind: dict[DeclarationKind, dict[str, Declaration]] = {
            kind: {}
            for kind in DeclarationKind
            if kind not in (DeclarationKind.SCHEMA, DeclarationKind.EXTENSION)
        }
        self._schema: SchemaDeclaration | None = None
        self._extensions: dict[str, list[FieldDefinitionNode]] = {}
        self._extension_declarations: list[TypeExtension] = []
        self._frozen = False

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def register(self, declaration: Declaration) -> None:
        """
        Register a declaration under its kind and name.

        Raises:
            DuplicateDeclaration: If the same kind and name already exist
            SchemaAlreadyDefined: On a second schema declaration
            RegistryFrozen: After the schema has been built
        """
        self._ensure_open(declaration.name)

        if isinstance(declaration, TypeExtension):
            self._extension_declarations.append(declaration)
            self.register_extension(declaration.name, declaration.fields)
            return

        if isinstance(declaration, SchemaDeclaration):
            if self._schema is not None:
                raise SchemaAlreadyDefined()
            self._schema = declaration
            logger.debug("[registry] Registered schema definition")
            return

        bucket = self._by_kind[declaration.kind]
        if declaration.name in bucket:
            raise DuplicateDeclaration(declaration.name, declaration.kind.value)

        bucket[declaration.name] = declaration
        logger.debug(f"[registry] Registered {declaration.kind.value}: {declaration.name}")

    def register_extension(
        self,
        name: str,
        fields: Iterable[FieldDefinitionNode],
    ) -> None:
        """
        Queue extra fields for an object type.

        Extension fields are applied after the base type's own fields,
        in registration order. The base type need not be registered yet.
        """
        self._ensure_open(name)
        pending = self._extensions.setdefault(name, [])
        added = list(fields)
        pending.extend(added)
        logger.debug(f"[registry] Queued {len(added)} extension field(s) for {name}")

    def ingest(self, document: DocumentNode) -> int:
        """
        Register every definition of a parsed document.

        Returns:
            Number of declarations registered
        """
        count = 0
        for declaration in collect_declarations(document):
            self.register(declaration)
            count += 1
        return count

    def freeze(self) -> None:
        """Reject any further registration."""
        self._frozen = True

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def _ensure_open(self, name: str) -> None:
        if self._frozen:
            raise RegistryFrozen("definition registry", name)

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    @property
    def schema(self) -> SchemaDeclaration | None:
        return self._schema

    @property
    def objects(self) -> Mapping[str, ObjectDeclaration]:
        return self._view(DeclarationKind.OBJECT)

    @property
    def input_objects(self) -> Mapping[str, InputObjectDeclaration]:
        return self._view(DeclarationKind.INPUT_OBJECT)

    @property
    def enums(self) -> Mapping[str, EnumDeclaration]:
        return self._view(DeclarationKind.ENUM)

    @property
    def scalars(self) -> Mapping[str, ScalarDeclaration]:
        return self._view(DeclarationKind.SCALAR)

    @property
    def unions(self) -> Mapping[str, UnionDeclaration]:
        return self._view(DeclarationKind.UNION)

    @property
    def directives(self) -> Mapping[str, DirectiveDeclaration]:
        return self._view(DeclarationKind.DIRECTIVE)

    @property
    def extensions(self) -> tuple[TypeExtension, ...]:
        """Extension declarations in registration order."""
        return tuple(self._extension_declarations)

    def extensions_for(self, name: str) -> tuple[FieldDefinitionNode, ...]:
        """Pending extension fields for an object type."""
        return tuple(self._extensions.get(name, ()))

    @property
    def extended_type_names(self) -> tuple[str, ...]:
        return tuple(self._extensions)

    def _view(self, kind: DeclarationKind) -> MappingProxyType:
        return MappingProxyType(self._by_kind[kind])

    def __len__(self) -> int:
        total = sum(len(bucket) for bucket in self._by_kind.values())
        return total + (1 if self._schema is not None else 0)

    def __repr__(self) -> str:
        counts = {kind.value: len(bucket) for kind, bucket in self._by_kind.items() if bucket}
        return f"DefinitionRegistry({counts}, frozen={self._frozen})"
