"""Quick start example: build a 2D piece-wise linear table and evaluate it."""

from cpwlf import CPWLF, NO_VALUE, Continuation

# Fuel burn (kg/h) by altitude (kft) then airspeed (kt)
burn = CPWLF(oob="level")
burn.knot(0, 100, 300).knot(0, 200, 520)
burn.knot(10, 100, 260).knot(10, 200, 450)
burn.knot(20, 100, 240).knot(20, 200, 400)

# One argument per dimension
partial = burn(15)
print(f"burn(15) is a continuation: {isinstance(partial, Continuation)}")
print(f"burn(15)(150) = {partial(150):.1f}")
print(f"burn(15, 250) = {burn(15, 250):.1f}  (airspeed levelled at 200)")

# Same table from a grid
grid = CPWLF.from_grid(
    [[0, 10, 20], [100, 200]],
    [[300, 520], [260, 450], [240, 400]],
    oob="undef",
)
print(f"grid(15, 150) = {grid(15, 150):.1f}")
print(f"grid(25, 150) is NO_VALUE: {grid(25, 150) is NO_VALUE}")

# Batch evaluation
print(grid.eval_batch([[5, 120], [12, 180], [30, 150]]))
