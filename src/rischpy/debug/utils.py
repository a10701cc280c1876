from typing import Callable

from ..expr import Expr, Num, Symbol
from ..tower import Tower


def debug_repr(expr: Expr) -> str:
    """The structure of an Expr, class names included. Two exprs with the same repr can still
    differ here, ex. Rat(1/2) vs Power(2, -1)."""
    if isinstance(expr, (Num, Symbol)):
        return f"{expr.__class__.__name__}({expr})"
    children = ", ".join(debug_repr(c) for c in expr.children())
    return f"{expr.__class__.__name__}({children})"


def print_tower(tower: Tower, func: Callable[[str], None] = print) -> None:
    """Prints each generator of the tower on its own line, lowest first."""
    func(f"Tower over {tower.field}:")
    for g in tower.generators:
        func(f"  [{g.height}] {g!r}")
