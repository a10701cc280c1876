"""The differential field tower.

Generators are referred to by their height (an index into Tower.generators), never by links to
each other. Generator h only ever mentions generators below h.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import sympy

from .classifier import FunctionKind, IdentityTerm, Term, exponent_of, split_exponent
from .convert import to_sympy
from .errors import MalformedTower, UnsupportedIntegrand, backend_errors
from .expr import E, Expr, Power, Prod, Rat, SingleFunc, Sum, Symbol, exp, log
from .fields import CoefficientField


class GeneratorKind(Enum):
    IDENTITY = "identity"
    LOG = "log"
    EXP = "exp"


@dataclass(frozen=True)
class Generator:
    height: int
    kind: GeneratorKind
    argument: Optional[sympy.Expr]  # u for log(u) and exp(u), in terms of lower generators
    symbol: sympy.Symbol
    derivative: sympy.Expr  # D(symbol)
    definition: Expr  # what the symbol stands for, for putting results back together

    def __repr__(self) -> str:
        if self.kind is GeneratorKind.IDENTITY:
            return f"{self.symbol} = {self.definition}"
        return f"{self.symbol} = {self.kind.value}({self.argument}), D = {self.derivative}"


class Tower:
    def __init__(self, field: CoefficientField):
        self.field = field
        self.generators: List[Generator] = []
        self._var: Optional[Symbol] = None

    @property
    def var(self) -> Symbol:
        """the integration variable as an Expr"""
        return self._var

    @property
    def symbols(self) -> List[sympy.Symbol]:
        return [g.symbol for g in self.generators]

    @property
    def height(self) -> int:
        return len(self.generators) - 1

    def __getitem__(self, h: int) -> Generator:
        return self.generators[h]

    def __len__(self) -> int:
        return len(self.generators)

    def D(self, f: sympy.Expr, level: Optional[int] = None) -> sympy.Expr:
        """total derivation, by the chain rule through every generator up to level"""
        gens = self.generators if level is None else self.generators[: level + 1]
        ans = sum((sympy.diff(f, g.symbol) * g.derivative for g in gens), sympy.S.Zero)
        return self.field.normalize(ans)

    def Dpoly(self, p: sympy.Poly) -> sympy.Poly:
        """D of a polynomial in its own generator. D(t) has to be a polynomial in t, which holds for
        log and exp generators."""
        return self.field.poly(self.D(p.as_expr()), *p.gens)

    def constant(self, f: sympy.Expr) -> bool:
        return not (self.field.normalize(f).free_symbols & set(self.symbols))

    def level(self, f: sympy.Expr) -> int:
        """height of the highest generator in f, -1 if f is a constant"""
        present = self.field.normalize(f).free_symbols
        heights = [g.height for g in self.generators if g.symbol in present]
        return max(heights, default=-1)

    def find(self, kind: GeneratorKind, argument: sympy.Expr) -> Optional[Generator]:
        for g in self.generators:
            if g.kind is kind and self.field.is_zero(g.argument - argument):
                return g
        return None

    def convert(self, expr: Expr) -> sympy.Expr:
        """Writes a front-end Expr as an element of the tower."""
        var = self._var

        def _convert(e: Expr) -> sympy.Expr:
            if not e.contains(var):
                return to_sympy(e)
            if isinstance(e, Symbol):
                return self.generators[0].symbol
            if isinstance(e, Sum):
                return sympy.Add(*[_convert(t) for t in e.terms])
            if isinstance(e, Prod):
                return sympy.Mul(*[_convert(t) for t in e.terms])
            if isinstance(e, Power):
                if e.base.contains(var):
                    return sympy.Pow(_convert(e.base), to_sympy(e.exponent))
                return _convert_exp(e)
            if isinstance(e, log):
                return _convert_log(e)
            if isinstance(e, SingleFunc):
                raise UnsupportedIntegrand(f"{e.__class__.__name__} can't be a tower element: {e}")
            raise UnsupportedIntegrand(f"Can't convert {e.__class__.__name__} to a tower element")

        def _convert_log(e: log) -> sympy.Expr:
            u = _convert(e.inner)
            g = self.find(GeneratorKind.LOG, u)
            if g is None:
                raise MalformedTower(f"{e} refers to a generator that isn't in the tower (yet)")
            ans = g.symbol
            if not isinstance(e.base, E):
                ans = ans / sympy.log(to_sympy(e.base))
            return ans

        def _convert_exp(e: Power) -> sympy.Expr:
            w, factor = exponent_of(e, var)
            const, parts = split_exponent(w, var, factor)
            ans = sympy.exp(to_sympy(const))
            for c, m in parts:
                u = _convert(Prod([Rat(c), m]))
                ans *= self._exp_power(u, e)
            return ans

        return _convert(expr)

    def _exp_power(self, u: sympy.Expr, e: Expr) -> sympy.Expr:
        for g in self.generators:
            if g.kind is not GeneratorKind.EXP:
                continue
            n = self.field.normalize(u / g.argument)
            if n.is_Integer:
                return g.symbol**n
        raise MalformedTower(f"{e} refers to a generator that isn't in the tower (yet)")

    def _add(self, kind: GeneratorKind, argument: Optional[sympy.Expr], derivative, definition: Expr) -> Generator:
        h = len(self.generators)
        name = self._var.name if kind is GeneratorKind.IDENTITY else f"_t{h}"
        symbol = sympy.Symbol(name)
        if argument is not None and self.level(argument) >= h:
            raise MalformedTower(f"generator {h} has argument {argument} that refers to itself or above")
        gen = Generator(h, kind, argument, symbol, derivative, definition)
        self.generators.append(gen)
        return gen

    def __repr__(self) -> str:
        return f"Tower({self.field.TAG}, {self.generators})"


@backend_errors
def build_tower(terms: List[Term], field: CoefficientField, definition: Optional[Expr] = None) -> Tower:
    """definition: what the identity generator stands for when it isn't the integration variable
    itself (the half-angle substitution)."""
    tower = Tower(field)
    head = terms[0]
    if not isinstance(head, IdentityTerm):
        raise MalformedTower("the first term has to be the identity")
    tower._var = head.var
    tower._add(GeneratorKind.IDENTITY, None, sympy.S.One, head.var if definition is None else definition)

    for term in terms[1:]:
        if isinstance(term, IdentityTerm):
            raise MalformedTower("only one identity term allowed")
        if term.kind in (FunctionKind.TAN, FunctionKind.ATAN):
            raise UnsupportedIntegrand(f"{term.kind.value} can't extend the tower, rewrite it first")

        u = tower.convert(term.full_argument)
        kind = GeneratorKind.LOG if term.kind is FunctionKind.LOG else GeneratorKind.EXP
        if tower.find(kind, u) is not None:
            continue
        if kind is GeneratorKind.LOG:
            derivative = field.normalize(tower.D(u) / u)
            tower._add(kind, u, derivative, log(term.full_argument))
        else:
            h = len(tower.generators)
            derivative = field.normalize(tower.D(u) * sympy.Symbol(f"_t{h}"))
            tower._add(kind, u, derivative, exp(term.full_argument))
    return tower
