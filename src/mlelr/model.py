"""Model specification: one dependent variable, effects and interactions.

A :class:`ModelSpec` is built incrementally, one variable at a time,
with :meth:`ModelSpec.add_variable`.  The :class:`VariableKind` of each
call decides where the variable goes:

* ``DEPENDENT`` — sets the response variable.
* ``MAIN`` — appends a categorical main effect.
* ``DIRECT`` — appends a continuous (direct) effect, entered as a
  single raw-value column.
* ``NEW_INTERACTION`` — starts a new interaction with this variable as
  its first term.
* ``INTERACTION`` — appends a term to the most recent interaction.

Effects are append-only and keep their declaration order, which is the
column order of the design matrix.  A variable that appears in an
interaction without having been declared first is registered as a
categorical main effect at that point.

:func:`parse_model` accepts the formula syntax::

    dv = a b direct.c a*b

where whitespace separates terms, ``direct.`` marks a continuous effect
and ``*`` joins the terms of an interaction.
"""

from __future__ import annotations

import enum
import logging
import warnings
from dataclasses import dataclass, field

from .dataset import Dataset
from .errors import InputError

logger = logging.getLogger(__name__)

_DIRECT_PREFIX = "direct."

_SYNTAX_HELP = (
    "Expected a dependent variable name, followed by '=', followed by "
    "zero or more effects.  Specify interactions with an asterisk, as in "
    "var1*var2, and direct effects with a 'direct.' prefix, as in "
    "direct.var1."
)


class VariableKind(enum.Enum):
    DEPENDENT = "dependent"
    MAIN = "main"
    DIRECT = "direct"
    NEW_INTERACTION = "new_interaction"
    INTERACTION = "interaction"


@dataclass(frozen=True)
class Effect:
    """An independent variable entered as a main or direct effect."""

    name: str
    index: int
    """Column of the variable in the source dataset."""

    direct: bool = False


@dataclass
class Interaction:
    """An ordered product of effects.

    ``terms`` holds positions in :attr:`ModelSpec.effects`, not dataset
    columns.
    """

    terms: list[int]
    name: str


@dataclass
class ModelSpec:
    """A multinomial logit model over the variables of one dataset."""

    dataset: Dataset
    dependent: str | None = None
    dv: int | None = None
    effects: list[Effect] = field(default_factory=list)
    interactions: list[Interaction] = field(default_factory=list)

    # ---- Views -----------------------------------------------------

    @property
    def n_effects(self) -> int:
        return len(self.effects)

    @property
    def iv(self) -> list[int]:
        """Dataset column indices of the independent variables."""
        return [e.index for e in self.effects]

    @property
    def ivnames(self) -> list[str]:
        return [e.name for e in self.effects]

    def effect_position(self, varname: str) -> int:
        """Position of *varname* in :attr:`effects`, or ``-1``."""
        for pos, effect in enumerate(self.effects):
            if effect.name == varname:
                return pos
        return -1

    # ---- Construction ----------------------------------------------

    def add_variable(self, varname: str, kind: VariableKind) -> None:
        """Add *varname* to the model in the role given by *kind*.

        Raises:
            InputError: If *varname* is not a variable of the dataset, or
                an ``INTERACTION`` term arrives before any interaction
                has been started.
        """
        logger.debug("Adding %s variable: %s", kind.name, varname)
        varidx = self.dataset.require_varname(varname)

        if kind is VariableKind.DEPENDENT:
            self.dependent = varname
            self.dv = varidx
            return

        ividx = next(
            (pos for pos, e in enumerate(self.effects) if e.index == varidx), -1
        )

        if ividx != -1 and kind in (VariableKind.MAIN, VariableKind.DIRECT):
            warnings.warn(
                f"Variable already exists in model: {varname}",
                UserWarning,
                stacklevel=2,
            )
            return

        if kind is VariableKind.INTERACTION and not self.interactions:
            raise InputError(
                f"Interaction term '{varname}' has no interaction to join."
            )

        if ividx == -1:
            if kind in (VariableKind.NEW_INTERACTION, VariableKind.INTERACTION):
                warnings.warn(
                    "This interaction variable will also be added as a "
                    f"main effect: {varname}",
                    UserWarning,
                    stacklevel=2,
                )
            self.effects.append(
                Effect(varname, varidx, direct=kind is VariableKind.DIRECT)
            )
            ividx = len(self.effects) - 1

        if kind is VariableKind.NEW_INTERACTION:
            self.interactions.append(Interaction([ividx], varname))

        elif kind is VariableKind.INTERACTION:
            current = self.interactions[-1]
            if ividx in current.terms:
                warnings.warn(
                    f"Interaction variable already exists: {varname}",
                    UserWarning,
                    stacklevel=2,
                )
                return
            current.terms.append(ividx)
            current.name = f"{current.name}*{varname}"

    def add_dependent(self, varname: str) -> ModelSpec:
        self.add_variable(varname, VariableKind.DEPENDENT)
        return self

    def add_main(self, varname: str) -> ModelSpec:
        self.add_variable(varname, VariableKind.MAIN)
        return self

    def add_direct(self, varname: str) -> ModelSpec:
        self.add_variable(varname, VariableKind.DIRECT)
        return self

    def add_interaction(self, *varnames: str) -> ModelSpec:
        """Declare the interaction ``varnames[0]*varnames[1]*…``."""
        if not varnames:
            raise InputError("An interaction needs at least one term.")
        self.add_variable(varnames[0], VariableKind.NEW_INTERACTION)
        for varname in varnames[1:]:
            self.add_variable(varname, VariableKind.INTERACTION)
        return self

    def validate(self, weight: int | None = None) -> None:
        """Raise :class:`InputError` unless the model can be fitted.

        *weight* is the weight column of the fit; it defaults to the
        dataset's own weight variable.
        """
        if weight is None:
            weight = self.dataset.weight
        if self.dv is None:
            raise InputError("The model has no dependent variable.")
        if self.dv in self.iv:
            raise InputError(
                f"Dependent variable '{self.dependent}' is also an "
                "independent variable."
            )
        if weight is not None and weight in (self.dv, *self.iv):
            raise InputError(
                f"Weight variable '{self.dataset.varnames[weight]}' cannot be a "
                "model variable."
            )

    def describe(self) -> list[str]:
        """Human-readable lines summarising the model."""
        lines = [
            f"Dependent variable: {self.dependent}",
            f"Number of independent variables: {self.n_effects}",
        ]
        for i, effect in enumerate(self.effects, start=1):
            suffix = " (DIRECT)" if effect.direct else ""
            lines.append(f"Effect {i}: {effect.name}{suffix}")
        lines.append(f"Number of interactions: {len(self.interactions)}")
        for i, inter in enumerate(self.interactions, start=1):
            terms = ", ".join(str(t) for t in inter.terms)
            lines.append(
                f"Interaction {i}: {inter.name}, {len(inter.terms)} terms [{terms}]"
            )
        return lines


def parse_model(dataset: Dataset, formula: str) -> ModelSpec:
    """Parse ``"dv = term term …"`` into a :class:`ModelSpec`.

    Terms are whitespace separated.  ``a*b*c`` declares an interaction,
    ``direct.x`` a direct effect, and any other name a categorical main
    effect.  A formula with no terms describes the intercept-only model.

    Raises:
        InputError: On malformed syntax or unknown variable names.
    """
    lhs, sep, rhs = formula.partition("=")
    dependent = lhs.split()
    if not sep or len(dependent) != 1:
        raise InputError(f"Malformed model formula {formula!r}. {_SYNTAX_HELP}")

    model = ModelSpec(dataset)
    model.add_dependent(dependent[0])

    for term in rhs.split():
        if "*" in term:
            names = term.split("*")
            if any(not name for name in names):
                raise InputError(f"Malformed interaction {term!r}. {_SYNTAX_HELP}")
            model.add_interaction(*names)
        elif term.startswith(_DIRECT_PREFIX) and len(term) > len(_DIRECT_PREFIX):
            model.add_direct(term[len(_DIRECT_PREFIX) :])
        else:
            model.add_main(term)

    return model


__all__ = [
    "Effect",
    "Interaction",
    "ModelSpec",
    "VariableKind",
    "parse_model",
]
