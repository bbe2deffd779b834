"""mlelr — Maximum-likelihood estimation of multinomial logistic regression.

Fits multinomial logit models to frequency-weighted data by
Newton-Raphson (Fisher scoring) on aggregated populations, with
categorical main effects, continuous (direct) effects and interactions
of any order, and reports likelihood-ratio, deviance and Wald tests.

Public API:
    .. autosummary::
        logistic_regression
        Dataset
        Session
        read_delimited
        SYSMIS
        ModelSpec
        VariableKind
        parse_model
        frequency_table
        tabulate
        build_design
        fit_newton
        FitOptions
        FitContext
        LogisticRegressionResult
        InputError
        NumericFailure
        print_results
"""

from ._config import FitOptions
from ._context import FitContext
from ._results import ChiSquareTest, LogisticRegressionResult, ModelFitTests
from .core import logistic_regression
from .dataset import SYSMIS, Dataset, Session, read_delimited
from .design import DesignMatrix, build_design
from .display import (
    print_crosstab,
    print_dataset,
    print_design_matrix,
    print_frequency_table,
    print_model_fit,
    print_model_summary,
    print_parameter_estimates,
    print_results,
)
from .errors import (
    InputError,
    NotPositiveDefiniteError,
    NumericFailure,
    ReconstructionError,
    SingularMatrixError,
)
from .model import Effect, Interaction, ModelSpec, VariableKind, parse_model
from .newton import fit_newton
from .tabulate import FrequencyTable, PopulationTable, frequency_table, tabulate

__all__ = [
    "ChiSquareTest",
    "LogisticRegressionResult",
    "ModelFitTests",
    "FitContext",
    "FitOptions",
    "logistic_regression",
    "SYSMIS",
    "Dataset",
    "Session",
    "read_delimited",
    "Effect",
    "Interaction",
    "ModelSpec",
    "VariableKind",
    "parse_model",
    "FrequencyTable",
    "PopulationTable",
    "frequency_table",
    "tabulate",
    "DesignMatrix",
    "build_design",
    "fit_newton",
    "InputError",
    "NumericFailure",
    "NotPositiveDefiniteError",
    "SingularMatrixError",
    "ReconstructionError",
    "print_crosstab",
    "print_dataset",
    "print_design_matrix",
    "print_frequency_table",
    "print_model_fit",
    "print_model_summary",
    "print_parameter_estimates",
    "print_results",
]

__version__ = "0.1.0"
