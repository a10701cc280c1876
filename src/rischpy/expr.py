"""RULES OF EXPRs:

1. Exprs shall NOT be mutated in place after __post_init__.
A tower stores Exprs as generator definitions and hands them back during reconstruction, so their value
has to stay the same forever.

Note on equality: if you call (expr1 == expr2), it returns true/false based on **the structure of the expr is the same.**
rather than based on their values being equal. if you wanna check equality of values, convert to the algebra backend
(see convert.py) and compare there.

Everything is exact. There is no float support on purpose: the integrator works over the rationals
or over algebraic numbers, never over approximations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from fractions import Fraction
from functools import cmp_to_key, reduce
from typing import Dict, List, Literal, Optional, Tuple, Type, Union


def _cast(x):
    """Cast x to an Expr if possible."""
    if x is None or x is True or x is False or isinstance(x, Expr):
        return x

    if isinstance(x, (Fraction, int)):
        return Rat(x)
    if isinstance(x, float):
        raise NotImplementedError(f"Cannot cast float {x} to Expr, use Fraction or Rat instead")

    if isinstance(x, dict):
        return {k: _cast(v) for k, v in x.items()}
    elif isinstance(x, tuple):
        return tuple(_cast(v) for v in x)
    elif isinstance(x, list):
        return [_cast(v) for v in x]

    if isinstance(x, type) and issubclass(x, Expr):
        return x

    raise NotImplementedError(f"Cannot cast {x} to Expr")


def _cast_option(x):
    """Keyword arguments can also be options that aren't expressions, ex. an observer."""
    if isinstance(x, (Expr, Fraction, int, float, dict, tuple, list)):
        return _cast(x)
    return x


def cast(func):
    """Decorator to cast all arguments to Expr."""

    def wrapper(*args, **kwargs) -> "Expr":
        return func(*map(_cast, args), **{k: _cast_option(v) for k, v in kwargs.items()})

    return wrapper


class Expr(ABC):
    """Base class for all expressions."""

    _fields_already_casted = False  # class attribute

    # These should never change per instance.
    _symbols_cache = None

    def __post_init__(self):
        # if any field is an Expr, cast it
        if not self._fields_already_casted:
            for field in fields(self):
                if field.type is Expr:
                    setattr(self, field.name, _cast(getattr(self, field.name)))

    @cast
    def __add__(self, other) -> "Expr":
        return Sum([self, other])

    @cast
    def __radd__(self, other) -> "Expr":
        return Sum([other, self])

    @cast
    def __sub__(self, other) -> "Expr":
        return self + (-1 * other)

    @cast
    def __rsub__(self, other) -> "Expr":
        return other + (-1 * self)

    @cast
    def __mul__(self, other) -> "Expr":
        return Prod([self, other])

    @cast
    def __rmul__(self, other) -> "Expr":
        return Prod([other, self])

    @cast
    def __pow__(self, other) -> "Expr":
        return Power(self, other)

    @cast
    def __rpow__(self, other) -> "Expr":
        return Power(other, self)

    @cast
    def __truediv__(self, other) -> "Expr":
        return Prod([self, Power(other, -1)])

    @cast
    def __rtruediv__(self, other) -> "Expr":
        return Prod([other, Power(self, -1)])

    def __neg__(self) -> "Expr":
        return -1 * self

    @cast
    @abstractmethod
    def subs(self, subs: Dict[str, "Expr"]) -> "Expr":
        """Substitute variables with expressions."""
        pass

    @abstractmethod
    def children(self) -> List["Expr"]:
        raise NotImplementedError(f"Cannot get children of {self.__class__.__name__}")

    def contains(self: "Expr", var: "Symbol") -> bool:
        is_var = isinstance(self, Symbol) and self.name == var.name
        return is_var or any(e.contains(var) for e in self.children())

    def has(self, cls: Type["Expr"]) -> bool:
        from .utils import contains_cls

        return contains_cls(self, cls)

    @abstractmethod
    def diff(self, var: "Symbol") -> "Expr":
        raise NotImplementedError(f"Cannot get the derivative of {self.__class__.__name__}")

    def _symbols(self) -> List["Symbol"]:
        str_set = {symbol.name for e in self.children() for symbol in e.symbols()}
        return [Symbol(name=s) for s in sorted(str_set)]

    def symbols(self) -> List["Symbol"]:
        """Get all symbols in the expression."""
        if self._symbols_cache is None:
            self._symbols_cache = self._symbols()
        return self._symbols_cache

    @abstractmethod
    def __repr__(self) -> str:
        raise NotImplementedError(f"Cannot represent {self.__class__.__name__}")

    @property
    def is_subtraction(self) -> bool:
        """Returns True if the expression would be a subtraction when printed in a sum."""
        return False

    @property
    def is_int(self) -> bool:
        """Returns True if the expression is an integer."""
        return False

    @property
    def symbolless(self) -> bool:
        return len(self.symbols()) == 0

    def as_terms(self):
        if isinstance(self, Sum):
            return self.terms
        return [self]


@dataclass
class Associative:
    """The children's __new__ must handle sorting & flattening."""

    terms: List[Expr]

    def __post_init__(self):
        assert len(self.terms) >= 2
        super().__post_init__()

    @classmethod
    def _flatten_terms(cls, terms: List[Expr]):
        """Utility function for flattening a list."""
        new_terms = []
        for t in terms:
            if isinstance(t, cls):
                new_terms += t.terms
            else:
                new_terms += [t]
        return new_terms

    def children(self) -> List["Expr"]:
        return self.terms

    @classmethod
    def _sort_terms(cls, terms) -> List[Expr]:
        def _nesting_without_factor(expr: "Expr") -> int:
            """Constant multipliers don't count, so 1 + x^3 + 3*x^2 prints in degree order."""
            if hasattr(expr, "_nesting_without_factor"):
                return expr._nesting_without_factor

            expr2 = remove_const_factor(expr)
            if isinstance(expr2, Symbol):
                ans = 1
            elif expr2.symbolless:
                ans = 0
            else:
                ans = 1 + max(_nesting_without_factor(sub_expr) for sub_expr in expr2.children())
            expr._nesting_without_factor = ans
            return ans

        def _symboless_nest(expr: Expr) -> int:
            if not expr.children():
                return 1 if isinstance(expr, Rat) else 2
            return 2 + max(_symboless_nest(sub_expr) for sub_expr in expr.children())

        def _symboless_compare(a: Expr, b: Expr) -> int:
            """a and b both don't have any symbols. rats first, then sort by nesting"""
            na = _symboless_nest(a)
            nb = _symboless_nest(b)
            if na != nb:
                return na - nb
            return 1 if a.__repr__() > b.__repr__() else -1

        def _compare(a: Expr, b: Expr) -> int:
            """Sort first by nesting, then by power, then alphabetically."""

            def _deconstruct_const_power(expr: Expr) -> Fraction:
                expr = remove_const_factor(expr)
                if isinstance(expr, Power) and isinstance(expr.exponent, Rat):
                    return expr.exponent.value
                return Fraction(1)

            na = _nesting_without_factor(a)
            nb = _nesting_without_factor(b)
            if na == 0 and nb == 0:
                return _symboless_compare(a, b)

            n = na - nb
            if n != 0:
                return n

            power = _deconstruct_const_power(a) - _deconstruct_const_power(b)
            if power != 0:
                return 1 if power > 0 else -1
            return 1 if a.__repr__() > b.__repr__() else -1

        return sorted(terms, key=cmp_to_key(_compare))

    def __iter__(self):
        return iter(self.terms)

    def __len__(self):
        return len(self.terms)


class Num(ABC):
    """Base class -- all numbers.

    all subclasses must implement value
    """

    value = None
    _fields_already_casted = True

    def __post_init__(self):
        super().__post_init__()

    def diff(self, var) -> "Rat":
        return Rat(0)

    def children(self) -> List["Expr"]:
        return []

    @cast
    def subs(self, subs: Dict[str, Expr]):
        return self

    def __repr__(self):
        return repr(self.value)

    @cast
    def __eq__(self, other):
        return isinstance(other, Num) and self.value == other.value

    def __hash__(self):
        return hash(self.value)

    @cast
    def __ge__(self, other):
        return isinstance(other, Num) and self.value >= other.value

    @cast
    def __gt__(self, other):
        return isinstance(other, Num) and self.value > other.value

    @cast
    def __le__(self, other):
        return isinstance(other, Num) and self.value <= other.value

    @cast
    def __lt__(self, other):
        return isinstance(other, Num) and self.value < other.value

    @property
    def is_subtraction(self) -> bool:
        return self.value < 0

    @property
    def sign(self) -> int:
        return -1 if self.value < 0 else 1


class Rat(Num, Expr):
    """A rational number."""

    value: Fraction

    def __init__(self, value: Union[Fraction, int], denom: int = 1):
        """if value is fraction, denom will be ignored."""
        if not isinstance(value, Fraction):
            value = Fraction(int(value), int(denom))
        self.value = value
        super().__post_init__()

    def __repr__(self) -> str:
        return str(self.value)

    # Shortcuts; Sum and Prod would fold these anyways.
    @cast
    def __add__(self, other) -> "Expr":
        if isinstance(other, Rat):
            return Rat(self.value + other.value)
        return super().__add__(other)

    @cast
    def __radd__(self, other) -> "Expr":
        if isinstance(other, Rat):
            return Rat(other.value + self.value)
        return super().__radd__(other)

    @cast
    def __sub__(self, other) -> "Expr":
        if isinstance(other, Rat):
            return Rat(self.value - other.value)
        return super().__sub__(other)

    @cast
    def __rsub__(self, other) -> "Expr":
        if isinstance(other, Rat):
            return Rat(other.value - self.value)
        return super().__rsub__(other)

    @cast
    def __mul__(self, other) -> "Expr":
        if isinstance(other, Rat):
            return Rat(self.value * other.value)
        return super().__mul__(other)

    @cast
    def __rmul__(self, other) -> "Expr":
        if isinstance(other, Rat):
            return Rat(other.value * self.value)
        return super().__rmul__(other)

    @cast
    def __truediv__(self, other) -> "Expr":
        if isinstance(other, Rat) and other.value != 0:
            return Rat(self.value / other.value)
        return super().__truediv__(other)

    @cast
    def __rtruediv__(self, other) -> "Expr":
        if isinstance(other, Rat) and self.value != 0:
            return Rat(other.value / self.value)
        return super().__rtruediv__(other)

    def __neg__(self):
        return Rat(-self.value)

    @cast
    def __pow__(self, other) -> Expr:
        if isinstance(other, Rat) and other.is_int and not (self.value == 0 and other.value < 0):
            return Rat(self.value ** int(other.value))
        return super().__pow__(other)

    @cast
    def __rpow__(self, other) -> Expr:
        if isinstance(other, Rat):
            return other.__pow__(self)
        return super().__rpow__(other)

    def __abs__(self) -> "Rat":
        return Rat(abs(self.value))

    def reciprocal(self) -> "Rat":
        return Rat(self.value.denominator, self.value.numerator)

    @property
    def is_int(self) -> bool:
        return self.value.denominator == 1

    @property
    def numerator(self) -> "Rat":
        return Rat(self.value.numerator)

    @property
    def denominator(self) -> "Rat":
        return Rat(self.value.denominator)


@dataclass
class Pi(Num, Expr):
    value = 3.141592653589793

    def __repr__(self) -> str:
        return "pi"


@dataclass
class E(Num, Expr):
    value = 2.718281828459045

    def __repr__(self) -> str:
        return "e"

    def __eq__(self, other) -> bool:
        return isinstance(other, E)

    def __hash__(self):
        return hash("e")


pi = Pi()
e = E()


def accumulate(*consts: "Rat", type_: Literal["sum", "prod"] = "sum") -> "Rat":
    """Accumulate constants into a single constant."""
    if len(consts) == 1:
        return consts[0]
    if type_ == "sum":
        return Rat(sum(c.value for c in consts))
    return Rat(reduce(lambda a, b: a * b, (c.value for c in consts), Fraction(1)))


def _int_root(n: int, k: int) -> Optional[int]:
    """Exact k-th root of a nonnegative int, None if n is not a perfect k-th power."""
    r = round(n ** (1 / k))
    for candidate in (r - 1, r, r + 1):
        if candidate >= 0 and candidate**k == n:
            return candidate
    return None


def _accumulate_power(b: "Rat", x: "Rat") -> Optional[Expr]:
    """If returns None, means it cannot be simplified."""
    if b == 0:
        if x > 0:
            return Rat(0)
        raise ZeroDivisionError("0 cannot be raised to a negative power")

    # If the answer is rational, return right away
    root = x.value.denominator
    if b.value >= 0 or root % 2 == 1:
        sign = -1 if b.value < 0 else 1
        num = _int_root(abs(b.value.numerator), root)
        den = _int_root(b.value.denominator, root)
        if num is not None and den is not None:
            return Rat(Fraction(sign * num, den)) ** x.value.numerator

    # Rewriting for consistency between same values.
    if b.value.numerator == 1:
        return Power(b.reciprocal(), -x)
    elif b.value.denominator != 1 and x < 0:
        return Power(b.reciprocal(), -x)

    if x.value.denominator % 2 == 0 and b < 0:
        # Cannot be simplified further.
        return
    elif b < 0:
        return -1 * Power(-b, x)

    # pull out the part of the numerator/denominator that is a perfect power
    num = _int_root(b.value.numerator, root)
    den = _int_root(b.value.denominator, root)
    ans = None
    if num is not None and num != 1:
        ans = Prod([Rat(num ** abs(x.value.numerator)), Power(b.denominator, -abs(x), skip_checks=True)], skip_checks=True)
    elif den is not None and den != 1:
        ans = Prod([Rat(1, den ** abs(x.value.numerator)), Power(b.numerator, abs(x), skip_checks=True)], skip_checks=True)
    if ans:
        return ans if x > 0 else 1 / ans


@dataclass
class Symbol(Expr):
    """A symbol. A variable."""

    name: str

    def __post_init__(self):
        super().__post_init__()
        assert len(self.name) > 0, "Symbol name cannot be empty"

    def __repr__(self) -> str:
        return self.name

    @cast
    def subs(self, subs: Dict[str, Expr]):
        return subs.get(self.name, self)

    def diff(self, var) -> Rat:
        return Rat(1) if self == var else Rat(0)

    def __eq__(self, other):
        return isinstance(other, Symbol) and self.name == other.name

    def children(self) -> List["Expr"]:
        return []

    def symbols(self) -> List["Expr"]:
        return [self]


def _combine_like_terms_sum(terms: List[Expr]) -> List[Expr]:
    """accumulate all like terms of a sum"""
    consts = []
    non_constant_terms = []
    for i, term in enumerate(terms):
        if term is None:
            continue
        is_hit = False
        if isinstance(term, Rat):
            consts.append(term)
            continue

        coeffs, non_const_factors1 = _deconstruct_prod(term)

        # check if any later terms are the same
        for j in range(i + 1, len(terms)):
            term2 = terms[j]
            if term2 is None:
                continue

            coeffs2, non_const_factors2 = _deconstruct_prod(term2)

            if non_const_factors1 == non_const_factors2:
                is_hit = True
                coeffs = coeffs + coeffs2  # use + instead of extend to not mutate the original list
                terms[j] = None

        if not is_hit:
            non_constant_terms.append(term)
            continue

        coeff = accumulate(*coeffs)
        if coeff == 0:
            continue
        elif coeff == 1:
            non_constant_terms.append(Prod(non_const_factors1, skip_checks=True))
        else:
            non_constant_terms.append(Prod([coeff] + non_const_factors1, skip_checks=True))

    if consts:
        const = accumulate(*consts)
        if const != 0:
            non_constant_terms.append(const)

    return non_constant_terms


@dataclass
class Sum(Associative, Expr):
    """A sum expression."""

    _fields_already_casted = True

    def __new__(cls, terms: List[Expr], *, skip_checks: bool = False) -> "Expr":
        """When a sum is initiated:
        - terms are converted to expr
        - flatten
        - accumulate like terms & constants
        - sort
        """
        if skip_checks:
            if len(terms) == 0:
                return Rat(0)
            if len(terms) == 1:
                return terms[0]
            return super().__new__(cls)

        terms = _cast(terms)
        terms = cls._flatten_terms(terms)
        final_terms = _combine_like_terms_sum(terms)

        if len(final_terms) == 0:
            return Rat(0)
        if len(final_terms) == 1:
            return final_terms[0]

        final_terms = cls._sort_terms(final_terms)

        instance = super().__new__(cls)
        instance.terms = final_terms
        return instance

    def __init__(self, terms: List[Expr], *, skip_checks: bool = False):
        # terms are already set in __new__ unless we skipped the checks.
        if skip_checks:
            self.terms = terms
        super().__post_init__()

    @classmethod
    def _sort_terms(cls, terms):
        # Sums are typically written from largest complexity to smallest (whereas for products it's the opposite)
        terms = super()._sort_terms(terms)
        return list(reversed(terms))

    def __neg__(self) -> "Sum":
        return Sum([-t for t in self.terms])

    @cast
    def subs(self, subs: Dict[str, Expr]):
        return Sum([t.subs(subs) for t in self.terms])

    def diff(self, var) -> Expr:
        return Sum([diff(e, var) for e in self.terms])

    def __repr__(self) -> str:
        ongoing_str = ""
        for i, term in enumerate(self.terms):
            if i == 0:
                ongoing_str += f"{term}"
            elif term.is_subtraction:
                ongoing_str += f" - {-term}"
            else:
                ongoing_str += f" + {term}"

        return ongoing_str

    @property
    def is_subtraction(self):
        return all(t.is_subtraction for t in self.terms)


def _deconstruct_prod(expr: Expr) -> Tuple[List[Rat], List[Expr]]:
    """turns an expression into a constant and a list of other terms.

    ex: 3*x^2*y -> ([3], [x^2, y])
    """
    if hasattr(expr, "_deconstruct_prod_cache"):
        return expr._deconstruct_prod_cache

    if isinstance(expr, Prod):
        non_const_factors = [t for t in expr.terms if not isinstance(t, Rat)]
        const_factors = [t for t in expr.terms if isinstance(t, Rat)]
        coeff = const_factors if const_factors else [Rat(1)]
    else:
        non_const_factors = [expr]
        coeff = [Rat(1)]

    expr._deconstruct_prod_cache = (coeff, non_const_factors)
    return expr._deconstruct_prod_cache


def deconstruct_power(expr: Expr) -> Tuple[Expr, Expr]:
    # x^3 -> (x, 3). x -> (x, 1). 3 -> (3, 1)
    if isinstance(expr, Power):
        return expr.base, expr.exponent
    return expr, Rat(1)


isfractionorneg = lambda x: isinstance(x, Rat) and (x.value.denominator != 1 or x < 0)
islongsymbol = lambda x: isinstance(x, Symbol) and len(x.name) > 1


def _combine_like_terms(initial_terms: List[Expr]) -> List[Expr]:
    """accumulates all like terms of a product.

    Takes in a list of terms, returns a list of terms
    """
    consts = []
    non_constant_terms = []
    decon = {}

    def _add_term(term):
        if isinstance(term, Rat):
            consts.append(term)
        else:
            non_constant_terms.append(term)

    for i, term in enumerate(initial_terms):
        is_hit = False
        if term is None:
            continue
        if isinstance(term, Rat):
            # constants never merge with powers of constants, so -1 * sqrt(-1) stays put.
            consts.append(term)
            continue
        if i not in decon:
            decon[i] = deconstruct_power(term)
        base, expo = decon[i]

        # other terms with same base
        for j in range(i + 1, len(initial_terms)):
            if initial_terms[j] is None or isinstance(initial_terms[j], Rat):
                continue
            if j not in decon:
                decon[j] = deconstruct_power(initial_terms[j])
            other_base, other_expo = decon[j]
            if other_base == base:
                is_hit = True
                expo += other_expo
                initial_terms[j] = None
                initial_terms[i] = None

        if not is_hit:
            _add_term(term)
            continue

        if expo == 0:
            continue
        if expo == 1:
            _add_term(base)
            continue

        _add_term(Power(base, expo))

    if consts:
        coeff = accumulate(*consts, type_="prod")
        if coeff == 0:
            return [coeff]
        if coeff != 1:
            non_constant_terms.append(coeff)
    return non_constant_terms


@dataclass
class Prod(Associative, Expr):
    """A product expression."""

    _numerator_denominator_cache = None
    _fields_already_casted = True

    def __new__(cls, terms: List[Expr], *, skip_checks: bool = False) -> "Expr":
        if skip_checks:
            if len(terms) == 0:
                return Rat(1)
            if len(terms) == 1:
                return terms[0]
            return super().__new__(cls)

        # We need to flatten BEFORE we accumulate like terms
        # ex: Prod(x, Prod(Power(x, -1), y))
        terms = _cast(terms)
        terms = cls._flatten_terms(terms)
        new_terms = _combine_like_terms(terms)

        if len(new_terms) == 0:
            return Rat(1)
        if len(new_terms) == 1:
            return new_terms[0]

        new_terms = cls._sort_terms(new_terms)

        if len(new_terms) == 2 and new_terms[0] == Rat(-1) and isinstance(new_terms[1], Sum):
            # -1 * (x + y) would get displayed as -x + y the way that repr is currently done.
            return -new_terms[1]

        instance = super().__new__(cls)
        instance.terms = new_terms
        return instance

    def __init__(self, terms: List[Expr], *, skip_checks: bool = False):
        if skip_checks:
            self.terms = terms
        # terms are already set in __new__
        super().__post_init__()

    def __repr__(self) -> str:
        def _term_repr(term):
            if isinstance(term, Sum) or islongsymbol(term):
                return "(" + repr(term) + ")"
            return repr(term)

        # special case for subtraction:
        if self.is_subtraction:
            new_prod = self * -1
            if not isinstance(new_prod, Prod):
                return f"-{_term_repr(new_prod)}"
            if new_prod.is_subtraction:
                from .debug.utils import debug_repr

                raise ValueError(f"Cannot get repr of {debug_repr(self)}")
            return "-" + new_prod.__repr__()

        numerator, denominator = self.numerator_denominator
        if denominator != Rat(1):

            def _x(expr: Expr, b=True):
                """b: bracketize multiple terms (boolean)"""
                if not isinstance(expr, Prod):
                    return _term_repr(expr)
                return "(" + repr(expr) + ")" if b else repr(expr)

            return _x(numerator, b=False) + "/" + _x(denominator)

        return "*".join(map(_term_repr, self.terms))

    @property
    def _numerator_denominator(self) -> Tuple[Expr, Expr]:
        denominator = []
        numerator = []
        for term in self.terms:
            # handle consts seperately
            if isinstance(term, Rat):
                if term.value.numerator != 1:
                    numerator.append(Rat(term.value.numerator))
                if term.value.denominator != 1:
                    denominator.append(Rat(term.value.denominator))
                continue

            b, x = deconstruct_power(term)
            if isinstance(x, Rat) and x.value < 0:
                denominator.append(b if x == Rat(-1) else Power(b, -x))
            else:
                numerator.append(term)

        num_expr = Prod(numerator, skip_checks=True)
        denom_expr = Prod(denominator, skip_checks=True)
        return [num_expr, denom_expr]

    @property
    def numerator_denominator(self) -> Tuple[Expr, Expr]:
        if self._numerator_denominator_cache is None:
            self._numerator_denominator_cache = self._numerator_denominator
        return self._numerator_denominator_cache

    @property
    def is_subtraction(self):
        return isinstance(self.terms[0], Rat) and self.terms[0] < 0

    @cast
    def subs(self, subs: Dict[str, Expr]):
        return Prod([t.subs(subs) for t in self.terms])

    def diff(self, var) -> Expr:
        return Sum([Prod([diff(e, var)] + [t for t in self.terms if t is not e]) for e in self.terms])


def _multiply_exponents(b: Expr, x1: Expr, x2: Expr) -> Expr:
    """(b^x1)^x2 -> b^(x1*x2)"""
    return b ** (x1 * x2)


def exp(x: Expr) -> Expr:
    return e**x


@dataclass
class Power(Expr):
    base: Expr
    exponent: Expr

    _fields_already_casted = True

    def __repr__(self) -> str:
        def _term_repr(term):
            if isinstance(term, Sum) or isinstance(term, Prod) or isfractionorneg(term) or islongsymbol(term):
                return "(" + repr(term) + ")"
            return repr(term)

        # represent negative powers as reciprocals
        if self.exponent == Rat(-1):
            return "1/" + _term_repr(self.base)
        if isinstance(self.exponent, Rat) and self.exponent < 0:
            new_power = Power(self.base, -self.exponent)
            return "1/" + repr(new_power)

        # special case for sqrt
        if self.exponent == Rat(1, 2):
            return _repr(self.base, "sqrt")

        return f"{_term_repr(self.base)}^{_term_repr(self.exponent)}"

    def __new__(cls, base: Expr, exponent: Expr, *, skip_checks: bool = False) -> "Expr":
        if skip_checks:
            return super().__new__(cls)

        b = _cast(base)
        x = _cast(exponent)

        default_return = super().__new__(cls)
        default_return.base = b
        default_return.exponent = x

        if x == 0:
            # python does 0**0 = 1 so we do it too.
            return Rat(1)
        if x == 1:
            return b
        if b == 1:
            return Rat(1)
        if isinstance(b, Rat) and isinstance(x, Rat):
            ans = _accumulate_power(b, x)
            if ans is None:
                return default_return
            return ans
        if isinstance(b, Power):
            return _multiply_exponents(b.base, b.exponent, x)
        if isinstance(b, Prod) and not b.is_subtraction:
            # (ab)^n -> a^n b^n. the parts might simplify on their own.
            return Prod([Power(term, x) for term in b.terms])
        if isinstance(x, log) and b == x.base:
            return x.inner
        if isinstance(x, Prod):
            for i, t in enumerate(x.terms):
                if isinstance(t, log) and t.base == b:
                    rest = Prod(x.terms[:i] + x.terms[i + 1 :], skip_checks=True)
                    return Power(t.inner, rest)
        if b.is_subtraction and isinstance(x, Rat) and x.value.denominator == 1:
            if x.value.numerator % 2 == 0:
                return Power(-b, x)
            else:
                return -Power(-b, x)

        return default_return

    def __init__(self, base: Expr, exponent: Expr, skip_checks: bool = False):
        if skip_checks:
            self.base = base
            self.exponent = exponent
        self.__post_init__()

    @cast
    def subs(self, subs: Dict[str, Expr]):
        return Power(self.base.subs(subs), self.exponent.subs(subs))

    def children(self) -> List["Expr"]:
        return [self.base, self.exponent]

    def diff(self, var) -> Expr:
        if not self.exponent.contains(var):
            return self.exponent * self.base ** (self.exponent - 1) * self.base.diff(var)
        if not self.base.contains(var):
            return log(self.base) * self * self.exponent.diff(var)

        # if both base and exponent contain var
        return self * (self.exponent.diff(var) * log(self.base) + self.exponent * self.base.diff(var) / self.base)

    @property
    def is_subtraction(self) -> bool:
        # if base is negative and the -1 can be factored out, we would have factored it out in new.
        return False


def _repr(inner: Expr, label: str) -> str:
    inner_repr = inner.__repr__()
    if inner_repr[0] == "(" and inner_repr[-1] == ")":
        return f"{label}{inner_repr}"
    return f"{label}({inner_repr})"


@dataclass
class log(Expr):
    inner: Expr
    base: Expr = e

    @property
    def _label(self):
        if self.base == e:
            return "ln"
        return f"log[base={self.base}]"

    def __repr__(self) -> str:
        return _repr(self.inner, self._label)

    @cast
    def subs(self, subs: Dict[str, Expr]):
        return log(self.inner.subs(subs), self.base.subs(subs))

    def children(self) -> List[Expr]:
        return [self.inner, self.base]

    @cast
    def __new__(cls, inner: Expr, base: Expr = e):
        if inner == 1:
            return Rat(0)
        if inner == base:
            return Rat(1)
        if isinstance(inner, Power) and inner.base == base:
            return inner.exponent

        return super().__new__(cls)

    @cast
    def __init__(self, inner: Expr, base: Expr = e):
        self.inner = inner
        self.base = base
        self.__post_init__()

    def diff(self, var) -> Expr:
        if self.base == e:
            return self.inner.diff(var) / self.inner
        return self.inner.diff(var) / (self.inner * log(self.base))


@cast
def sqrt(x: Expr) -> Expr:
    return x ** Rat(1, 2)


I = sqrt(-1)


class classproperty:
    """python 3.11 no longer supports
    @classmethod
    @property

    so we make our own :)
    """

    def __init__(self, func):
        self.func = func

    def __get__(self, instance, cls):
        return self.func(cls)


@dataclass
class SingleFunc(Expr):
    inner: Expr

    @property
    @abstractmethod
    def _label(self) -> str:
        raise NotImplementedError("Label not implemented")

    def children(self) -> List["Expr"]:
        return [self.inner]

    def __repr__(self) -> str:
        return _repr(self.inner, self._label)

    @cast
    def subs(self, subs: Dict[str, Expr]):
        inner = self.inner.subs(subs)
        return self.__class__(inner)


TrigStr = Literal["sin", "cos", "tan", "sec", "csc", "cot"]


class TrigFunction(SingleFunc, ABC):
    is_inverse: bool  # class property
    _fields_already_casted = True
    _odd = False
    _even = False
    _value_at_zero: Expr = Rat(0)

    @property
    def _label(self) -> str:
        return f"{'a' if self.is_inverse else ''}{self.func}"

    @cast
    def __new__(cls, inner: Expr, *, skip_checks: bool = False) -> "Expr":
        if skip_checks:
            return super().__new__(cls)

        if inner == 0:
            return cls._value_at_zero

        # Odd and even stuff
        if cls._odd and inner.is_subtraction:
            return -cls(-inner)
        if cls._even and inner.is_subtraction:
            return cls(-inner)

        # tan(atan(x)) -> x
        if isinstance(inner, TrigFunction) and inner.is_inverse != cls.is_inverse and inner.func == cls.func:
            if not cls.is_inverse:
                return inner.inner

        instance = super().__new__(cls)
        instance.inner = inner
        return instance

    def __init__(self, inner: Expr, *, skip_checks: bool = False):
        if skip_checks:
            self.inner = inner
        super().__post_init__()


class TrigFunctionNotInverse(TrigFunction, ABC):
    is_inverse = False

    @classproperty
    def reciprocal_class(cls) -> Type["TrigFunction"]:
        raise NotImplementedError(f"reciprocal_class not implemented for {cls.__name__}")


class sin(TrigFunctionNotInverse):
    func = "sin"
    _odd = True

    @classproperty
    def reciprocal_class(cls):
        return csc

    def diff(self, var) -> Expr:
        return cos(self.inner) * self.inner.diff(var)


class cos(TrigFunctionNotInverse):
    func = "cos"
    _even = True
    _value_at_zero = Rat(1)

    @classproperty
    def reciprocal_class(cls):
        return sec

    def diff(self, var: Symbol) -> Expr:
        return -sin(self.inner) * self.inner.diff(var)


class tan(TrigFunctionNotInverse):
    func = "tan"
    _odd = True

    @classproperty
    def reciprocal_class(cls):
        return cot

    def diff(self, var) -> Expr:
        return sec(self.inner) ** 2 * self.inner.diff(var)


class csc(TrigFunctionNotInverse):
    func = "csc"
    _odd = True

    @classproperty
    def reciprocal_class(cls):
        return sin

    def __new__(cls, inner: Expr) -> Expr:
        if inner == 0:
            raise ZeroDivisionError("csc(0) is undefined")
        return super().__new__(cls, inner)

    def diff(self, var) -> Expr:
        return -csc(self.inner) * cot(self.inner) * self.inner.diff(var)


class sec(TrigFunctionNotInverse):
    func = "sec"
    _even = True
    _value_at_zero = Rat(1)

    @classproperty
    def reciprocal_class(cls):
        return cos

    def diff(self, var) -> Expr:
        return sec(self.inner) * tan(self.inner) * self.inner.diff(var)


class cot(TrigFunctionNotInverse):
    func = "cot"
    _odd = True

    @classproperty
    def reciprocal_class(cls):
        return tan

    def __new__(cls, inner: Expr) -> Expr:
        if inner == 0:
            raise ZeroDivisionError("cot(0) is undefined")
        return super().__new__(cls, inner)

    def diff(self, var) -> Expr:
        return -csc(self.inner) ** 2 * self.inner.diff(var)


class atan(TrigFunction):
    func = "tan"
    is_inverse = True
    _odd = True

    def diff(self, var):
        return 1 / (1 + self.inner**2) * self.inner.diff(var)


class HyperbolicFunction(SingleFunc, ABC):
    _fields_already_casted = True
    _odd = False
    _even = False
    _value_at_zero: Expr = Rat(0)

    @property
    def _label(self) -> str:
        return self.func

    @cast
    def __new__(cls, inner: Expr) -> "Expr":
        if inner == 0:
            return cls._value_at_zero
        if cls._odd and inner.is_subtraction:
            return -cls(-inner)
        if cls._even and inner.is_subtraction:
            return cls(-inner)

        instance = super().__new__(cls)
        instance.inner = inner
        return instance

    def __init__(self, inner: Expr):
        super().__post_init__()


class sinh(HyperbolicFunction):
    func = "sinh"
    _odd = True

    def diff(self, var) -> Expr:
        return cosh(self.inner) * self.inner.diff(var)


class cosh(HyperbolicFunction):
    func = "cosh"
    _even = True
    _value_at_zero = Rat(1)

    def diff(self, var) -> Expr:
        return sinh(self.inner) * self.inner.diff(var)


class tanh(HyperbolicFunction):
    func = "tanh"
    _odd = True

    def diff(self, var) -> Expr:
        return (1 - tanh(self.inner) ** 2) * self.inner.diff(var)


@dataclass
class Integral(Expr):
    """An unevaluated indefinite integral of integrand with respect to var."""

    integrand: Expr
    var: "Symbol"

    def __repr__(self) -> str:
        return f"Integral({self.integrand}, {self.var})"

    @cast
    def subs(self, subs: Dict[str, Expr]):
        # var is bound, leave it alone
        subs = {k: v for k, v in subs.items() if k != self.var.name}
        return Integral(self.integrand.subs(subs), self.var)

    def children(self) -> List[Expr]:
        return [self.integrand]

    def diff(self, var) -> Expr:
        if var == self.var:
            return self.integrand
        return Integral(self.integrand.diff(var), self.var)


@dataclass
class RootSum(Expr):
    """Sum of body(z) over the roots z of poly, for roots that cannot be written down explicitly."""

    poly: Expr
    var: "Symbol"
    body: Expr

    def __repr__(self) -> str:
        return f"RootSum({self.poly}, {self.var} -> {self.body})"

    @cast
    def subs(self, subs: Dict[str, Expr]):
        subs = {k: v for k, v in subs.items() if k != self.var.name}
        return RootSum(self.poly, self.var, self.body.subs(subs))

    def children(self) -> List[Expr]:
        return [self.poly, self.body]

    def _symbols(self) -> List["Symbol"]:
        return [s for s in super()._symbols() if s != self.var]

    def contains(self, var: "Symbol") -> bool:
        return var != self.var and self.body.contains(var)

    def diff(self, var) -> Expr:
        return RootSum(self.poly, self.var, self.body.diff(var))


def symbols(symbols: str) -> Union[Symbol, List[Symbol]]:
    """Creates symbols from a string of symbol names seperated by spaces."""
    symbols = [Symbol(name=s) for s in symbols.split(" ")]
    return symbols if len(symbols) > 1 else symbols[0]


@cast
def diff(expr: Expr, var: Optional[Symbol] = None) -> Expr:
    """Takes the derivative of expr relative to var. If expr has only one symbol in it, var doesn't need to be specified."""
    if var is None:
        symbols = expr.symbols()
        if len(symbols) != 1:
            raise ValueError(f"Must provide variable of differentiation for {expr}")
        var = symbols[0]

    return expr.diff(var)


def remove_const_factor(expr: Expr, include_factor=False) -> Expr:
    if isinstance(expr, Prod):
        if not hasattr(expr, "_sans_const_cache"):
            sans_const = [t for t in expr.terms if not t.symbolless]
            const = [t for t in expr.terms if t.symbolless]
            expr._sans_const_cache = Prod(sans_const, skip_checks=True)
            expr._const_cache = Prod(const, skip_checks=True)
        if include_factor:
            return expr._sans_const_cache, expr._const_cache
        return expr._sans_const_cache

    if include_factor:
        return expr, Rat(1)
    return expr
