"""
Algorithm parameters of a run.

Parameters are immutable once a run is submitted. They accept both snake_case
field names and the PascalCase keys used by existing parameter files
(``"PopulationSize"``, ``"RandomSeed"``, ...).
"""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, model_validator
from pydantic.alias_generators import to_pascal

from netcontrol.utils.errors import ParameterError


class Parameters(BaseModel):
    """Genetic algorithm parameters of a single run."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_pascal,
        extra="ignore",
    )

    random_seed: int = Field(0, description="Seed of the run's random stream")
    maximum_iterations: int = Field(10000, gt=0, description="Maximum number of generations")
    maximum_iterations_without_improvement: int = Field(
        1000, gt=0, description="Stop after this many generations without a better best fitness"
    )
    maximum_path_length: int = Field(5, gt=0, description="Maximum control path length")
    population_size: int = Field(80, ge=2, description="Number of chromosomes per generation")
    random_genes_per_chromosome: int = Field(
        25, ge=0, description="Extra gene redraws for every new random chromosome"
    )
    percentage_random: float = Field(0.25, ge=0.0, le=1.0, description="Share of new random chromosomes")
    percentage_elite: float = Field(
        0.25, ge=0.0, le=1.0, description="Share of chromosomes copied unchanged; any positive share keeps at least one"
    )
    probability_mutation: float = Field(0.01, ge=0.0, le=1.0, description="Per-gene mutation probability")

    @model_validator(mode="after")
    def check_shares(self) -> "Parameters":
        """The elite and random shares must leave room for each other."""
        if self.percentage_elite + self.percentage_random > 1.0:
            raise ValueError("percentage_elite + percentage_random must not exceed 1")
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Parameters":
        """
        Create parameters from a dictionary.

        Args:
            data: Parameter values (snake_case or PascalCase keys)

        Returns:
            Parameters instance

        Raises:
            ParameterError: If a value is missing its type or out of range
        """
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            errors = e.errors()
            first = errors[0] if errors else {}
            field = ".".join(str(part) for part in first.get("loc", ())) or None
            raise ParameterError(
                f"Invalid parameters: {first.get('msg', str(e))}",
                field=field,
                details={"errors": [
                    {"field": ".".join(str(part) for part in error.get("loc", ())), "message": error.get("msg")}
                    for error in errors
                ]},
            ) from e

    def with_overrides(self, overrides: Dict[str, Any]) -> "Parameters":
        """Return a copy with some values replaced, validating the result."""
        aliases = {field.alias: name for name, field in type(self).model_fields.items() if field.alias}
        data = self.model_dump()
        data.update({aliases.get(key, key): value for key, value in overrides.items()})
        return type(self).from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()
