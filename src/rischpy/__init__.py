from .errors import AlgorithmFailure, MalformedTower, NeedsAlgebraicNumbers, RischError, UnsupportedIntegrand
from .expr import *
from .integration import Integration, integrate
from .result import IntegrationResult, ResultKind
