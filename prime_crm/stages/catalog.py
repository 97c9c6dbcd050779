"""Stage catalog: the financing pipeline and the data captured at each stage.

The catalog is the single source of truth for stage percentages, titles and
the field specs staff must fill when moving a process into a stage. The two
pendency stages are overlays on the main pipeline: they are valid statuses
but take no part in ordering.
"""

from dataclasses import dataclass, field
from typing import Iterator, Mapping

from prime_crm.exceptions import UnknownStageError
from prime_crm.models.enums import FieldType, StageId

YES = "Sim"
NO = "Não"
CLIENT = "Cliente"
INTERNAL = "Interna"


@dataclass(frozen=True)
class FieldSpec:
    """Declared input for a stage submission."""

    name: str
    label: str
    field_type: FieldType = FieldType.TEXT
    required: bool = True
    options: tuple[str, ...] = ()
    aliases: Mapping[str, str] = field(default_factory=dict)  # alternative spelling -> option
    placeholder: str = ""
    condition_field: str | None = None
    condition_value: str | None = None

    def applies_to(self, values: Mapping[str, str]) -> bool:
        """Whether the field is visible given the other submitted values."""
        if self.condition_field is None:
            return True
        return values.get(self.condition_field) == self.condition_value

    def match_option(self, raw: str) -> str | None:
        """Map a submitted value onto one of the declared options."""
        key = raw.strip().casefold()
        for option in self.options:
            if option.casefold() == key:
                return option
        for alias, option in self.aliases.items():
            if alias.casefold() == key:
                return option
        return None


@dataclass(frozen=True)
class StageDefinition:
    """Catalog entry for one pipeline stage."""

    id: StageId
    title: str
    percentage: int
    description: str
    fields: tuple[FieldSpec, ...] = ()
    is_pendency: bool = False
    display_percentage: int | None = None  # progress bar position when it differs from percentage

    @property
    def progress(self) -> int:
        if self.display_percentage is not None:
            return self.display_percentage
        return self.percentage

    def field_spec(self, name: str) -> FieldSpec | None:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None


OBSERVATION_FIELDS = (
    FieldSpec("move_obs", "Observações", FieldType.TEXTAREA, required=False),
)

DEFAULT_STAGES: tuple[StageDefinition, ...] = (
    StageDefinition(
        id=StageId.CREDIT_ANALYSIS,
        title="20% - Crédito",
        percentage=20,
        description="Análise de crédito nos bancos",
        fields=(
            FieldSpec("bank_approved", "Banco(s) Aprovado(s)", placeholder="Ex: Caixa, Itaú, Bradesco"),
            FieldSpec("credit_value", "Valor da Carta de Crédito (R$)", FieldType.NUMBER, placeholder="0,00"),
            FieldSpec("credit_letter_link", "Link da Carta de Crédito (PDF)", FieldType.URL, required=False),
        ),
    ),
    StageDefinition(
        id=StageId.VALUATION,
        title="40% - Avaliação",
        percentage=40,
        description="Vistoria e laudo do imóvel",
        fields=(
            FieldSpec("valuation_value", "Valor da Avaliação (R$)", FieldType.NUMBER, placeholder="0,00"),
        ),
    ),
    StageDefinition(
        id=StageId.LEGAL_ANALYSIS,
        title="60% - Jurídico",
        percentage=60,
        description="Análise jurídica e documentação",
        fields=(
            FieldSpec(
                "has_pendency",
                "Há pendências?",
                FieldType.SELECT,
                options=(NO, YES),
                aliases={"nao": NO, "no": NO, "yes": YES},
            ),
            FieldSpec(
                "pendency_type",
                "Tipo de Pendência",
                FieldType.SELECT,
                options=(CLIENT, INTERNAL),
                aliases={"client": CLIENT, "internal": INTERNAL},
                condition_field="has_pendency",
                condition_value=YES,
            ),
            FieldSpec(
                "pendency_desc",
                "Descrição da Pendência",
                FieldType.TEXTAREA,
                placeholder="Descreva os documentos faltantes ou problemas...",
                condition_field="has_pendency",
                condition_value=YES,
            ),
        ),
    ),
    StageDefinition(
        id=StageId.ITBI_EMISSION,
        title="80% - ITBI",
        percentage=80,
        description="Emissão de documentos e impostos",
        fields=(
            FieldSpec("itbi_value", "Valor do ITBI (R$)", FieldType.NUMBER, placeholder="0,00"),
            FieldSpec("itbi_due_date", "Data de Vencimento", FieldType.DATE),
        ),
    ),
    StageDefinition(
        id=StageId.REGISTRY_SERVICE,
        title="Registro",
        percentage=95,
        description="Registro em cartório",
        fields=(
            FieldSpec("registry_office", "Cartório"),
            FieldSpec("protocol_number", "Número do Protocolo"),
        ),
    ),
    StageDefinition(
        id=StageId.CONTRACT_SIGNING,
        title="100% - Contrato",
        percentage=100,
        description="Assinatura e conclusão",
        fields=(
            FieldSpec("signing_date", "Data de Assinatura", FieldType.DATE),
        ),
    ),
    StageDefinition(
        id=StageId.PENDING_CLIENT,
        title="Pendência Cliente",
        percentage=0,
        description="Aguardando documentos do cliente",
        fields=OBSERVATION_FIELDS,
        is_pendency=True,
        display_percentage=60,
    ),
    StageDefinition(
        id=StageId.PENDING_INTERNAL,
        title="Pendência Interna",
        percentage=0,
        description="Erro interno - correção necessária",
        fields=OBSERVATION_FIELDS,
        is_pendency=True,
        display_percentage=60,
    ),
)


class StageCatalog:
    """Registry of stage definitions keyed by stage id."""

    def __init__(self, stages: tuple[StageDefinition, ...] = DEFAULT_STAGES) -> None:
        self._stages: dict[StageId, StageDefinition] = {stage.id: stage for stage in stages}
        self._ordered = tuple(
            sorted((s for s in stages if not s.is_pendency), key=lambda s: s.percentage)
        )
        percentages = [s.percentage for s in self._ordered]
        if len(set(percentages)) != len(percentages):
            raise ValueError("Pipeline stages must have distinct percentages")

    def lookup(self, stage_id: StageId | str) -> StageDefinition:
        """Return the definition for a stage id.

        Raises
        ------
        UnknownStageError
            If the id is not a catalog entry.
        """
        try:
            key = StageId(stage_id)
        except ValueError:
            raise UnknownStageError(stage_id) from None
        try:
            return self._stages[key]
        except KeyError:
            raise UnknownStageError(stage_id) from None

    def ordered_stages(self) -> tuple[StageDefinition, ...]:
        """Pipeline stages sorted by percentage, pendency overlays excluded."""
        return self._ordered

    def first_stage(self) -> StageDefinition:
        return self._ordered[0]

    def next_stage(self, stage_id: StageId | str) -> StageDefinition | None:
        """Stage that follows ``stage_id`` in the pipeline (None at the end or for overlays)."""
        current = self.lookup(stage_id)
        if current.is_pendency:
            return None
        index = self._ordered.index(current)
        if index + 1 < len(self._ordered):
            return self._ordered[index + 1]
        return None

    def progress_percentage(self, stage_id: StageId | str) -> int:
        return self.lookup(stage_id).progress

    def __contains__(self, stage_id: object) -> bool:
        try:
            self.lookup(stage_id)  # type: ignore[arg-type]
        except UnknownStageError:
            return False
        return True

    def __iter__(self) -> Iterator[StageDefinition]:
        return iter(self._stages.values())

    def __len__(self) -> int:
        return len(self._stages)


STAGE_CATALOG = StageCatalog()


def lookup(stage_id: StageId | str) -> StageDefinition:
    """Look up a stage in the default catalog."""
    return STAGE_CATALOG.lookup(stage_id)


def ordered_stages() -> tuple[StageDefinition, ...]:
    """Ordered pipeline stages of the default catalog."""
    return STAGE_CATALOG.ordered_stages()
