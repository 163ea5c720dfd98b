"""
Pure integer math for a constant-product automated market maker.

Amounts, reserves and LP supply are native-width unsigned integers
(np.uint32). Every multiplicative step is carried out in the widened
domain (np.uint64) through checked primitives, and only the final result
is narrowed back to np.uint32. Division always floors, so rounding favors
the pool.

None of these functions hold state. The exchange that owns the reserves
passes a snapshot in, receives a number back and applies it itself.
"""

import numpy as np

U32_MAX = np.uint32(np.iinfo(np.uint32).max)
U64_MAX = np.uint64(np.iinfo(np.uint64).max)

FEE_DENOMINATOR = np.uint32(10_000)

E_ZERO_AMOUNT = 0
E_RESERVES_EMPTY = 1
E_OVERFLOW = 2
E_INSUFFICIENT_LIQUIDITY = 3
E_INVALID_FEE = 4

_ZERO = np.uint64(0)
_ONE = np.uint64(1)


class AMMError(ValueError):
    """Base class for precondition failures. `code` is stable across releases."""

    code = None


class ZeroAmount(AMMError):
    """An amount that must be strictly positive was zero."""

    code = E_ZERO_AMOUNT


class ReservesEmpty(AMMError):
    """A reserve or LP supply that must be strictly positive was zero."""

    code = E_RESERVES_EMPTY


class MathOverflow(AMMError, OverflowError):
    """A result did not fit in the integer width it was computed in."""

    code = E_OVERFLOW


class InsufficientLiquidity(AMMError):
    """A request would take at least as much as the pool or supply holds."""

    code = E_INSUFFICIENT_LIQUIDITY


class InvalidFee(AMMError):
    """fee_bps lies outside what the formula can price."""

    code = E_INVALID_FEE


def _verify_uint32(value, param_name: str) -> None:
    """
    Helper function to verify that a value is of type np.uint32.

    Raises:
        TypeError: If value is not np.uint32
    """
    if not isinstance(value, np.uint32):
        raise TypeError(f"{param_name} must be np.uint32, got {type(value)}")


def _verify_uint64(value, param_name: str) -> None:
    if not isinstance(value, np.uint64):
        raise TypeError(f"{param_name} must be np.uint64, got {type(value)}")


# --- Checked arithmetic ---

def checked_mul(a: np.uint64, b: np.uint64) -> np.uint64:
    """Multiplies two uint64 values, raising MathOverflow instead of wrapping."""
    _verify_uint64(a, "a")
    _verify_uint64(b, "b")
    if a != _ZERO and b > U64_MAX // a:
        raise MathOverflow(f"{a} * {b} exceeds uint64")
    return a * b


def checked_add(a: np.uint64, b: np.uint64) -> np.uint64:
    """Adds two uint64 values, raising MathOverflow instead of wrapping."""
    _verify_uint64(a, "a")
    _verify_uint64(b, "b")
    if a > U64_MAX - b:
        raise MathOverflow(f"{a} + {b} exceeds uint64")
    return a + b


def narrow(value: np.uint64) -> np.uint32:
    """Converts a widened result back to native width."""
    _verify_uint64(value, "value")
    if value > np.uint64(U32_MAX):
        raise MathOverflow(f"{value} does not fit in uint32")
    return np.uint32(value)


# --- Integer square root ---

def _isqrt(x):
    # Babylonian method. y/2 + y%2 is the ceiling of y/2 without computing y+1,
    # which would wrap at the maximum value.
    if x == 0:
        return x
    two = x.dtype.type(2)
    y = x
    z = y // two + y % two
    while z < y:
        y = z
        z = (z + x // z) // two
    return y


def sqrt_u32(x: np.uint32) -> np.uint32:
    """floor(sqrt(x)) over the native width."""
    _verify_uint32(x, "x")
    return _isqrt(x)


def sqrt_u64(x: np.uint64) -> np.uint64:
    """floor(sqrt(x)) over the widened width."""
    _verify_uint64(x, "x")
    return _isqrt(x)


# --- Scalar utilities ---

def min_u32(a: np.uint32, b: np.uint32) -> np.uint32:
    _verify_uint32(a, "a")
    _verify_uint32(b, "b")
    return a if a < b else b


def max_u32(a: np.uint32, b: np.uint32) -> np.uint32:
    _verify_uint32(a, "a")
    _verify_uint32(b, "b")
    return a if a > b else b


def fee_denominator() -> np.uint32:
    """Basis-point denominator: 10,000 == 100%."""
    return FEE_DENOMINATOR


def constant_product(reserve_x: np.uint32, reserve_y: np.uint32) -> np.uint64:
    """Calculates the constant product 'k' using 64-bit precision."""
    _verify_uint32(reserve_x, "reserve_x")
    _verify_uint32(reserve_y, "reserve_y")
    return checked_mul(np.uint64(reserve_x), np.uint64(reserve_y))


# --- Swap pricing ---

def calculate_swap_output(amount_in: np.uint32, reserve_in: np.uint32,
                          reserve_out: np.uint32, fee_bps: np.uint32) -> np.uint32:
    """
    Output of an exact-input swap against x*y=k with a proportional fee.

        amount_out = floor(amount_in * (DENOM - fee) * reserve_out /
                           (reserve_in * DENOM + amount_in * (DENOM - fee)))

    The result is always strictly below reserve_out. Reserves are not
    touched: the caller applies reserve_in += amount_in and
    reserve_out -= amount_out.

    Usable range: amount_in * (DENOM - fee_bps) * reserve_out must fit in
    uint64, i.e. amount_in * reserve_out stays below about 1.8e15 at zero
    fee. A 1e6 trade against a 1e9 reserve fits; 2e6 against 1e9 does not.

    Raises:
        ReservesEmpty: If either reserve is zero
        ZeroAmount: If amount_in is zero
        InvalidFee: If fee_bps exceeds FEE_DENOMINATOR
        MathOverflow: If an intermediate product exceeds uint64
    """
    _verify_uint32(amount_in, "amount_in")
    _verify_uint32(reserve_in, "reserve_in")
    _verify_uint32(reserve_out, "reserve_out")
    _verify_uint32(fee_bps, "fee_bps")

    if reserve_in == 0 or reserve_out == 0:
        raise ReservesEmpty("Cannot swap against an empty reserve.")
    if amount_in == 0:
        raise ZeroAmount("amount_in must be positive.")
    # Checked before the uint64 subtraction below, which would otherwise wrap.
    if fee_bps > FEE_DENOMINATOR:
        raise InvalidFee(f"fee_bps must be in [0, {FEE_DENOMINATOR}].")

    u64_denom = np.uint64(FEE_DENOMINATOR)
    amount_in_with_fee = checked_mul(np.uint64(amount_in), u64_denom - np.uint64(fee_bps))

    numerator = checked_mul(amount_in_with_fee, np.uint64(reserve_out))
    denominator = checked_add(checked_mul(np.uint64(reserve_in), u64_denom), amount_in_with_fee)

    return narrow(numerator // denominator)


def calculate_swap_input(amount_out: np.uint32, reserve_in: np.uint32,
                         reserve_out: np.uint32, fee_bps: np.uint32) -> np.uint32:
    """
    Input required to receive exactly amount_out. Inverse of
    calculate_swap_output, rounded up by one unit so that quoting the
    returned input always yields at least amount_out.

    Raises:
        ReservesEmpty: If either reserve is zero
        ZeroAmount: If amount_out is zero
        InsufficientLiquidity: If amount_out would drain reserve_out
        InvalidFee: If fee_bps is FEE_DENOMINATOR or more
        MathOverflow: If an intermediate product exceeds uint64
    """
    _verify_uint32(amount_out, "amount_out")
    _verify_uint32(reserve_in, "reserve_in")
    _verify_uint32(reserve_out, "reserve_out")
    _verify_uint32(fee_bps, "fee_bps")

    if reserve_in == 0 or reserve_out == 0:
        raise ReservesEmpty("Cannot swap against an empty reserve.")
    if amount_out == 0:
        raise ZeroAmount("amount_out must be positive.")
    if amount_out >= reserve_out:
        raise InsufficientLiquidity("Output amount must be less than the total reserve.")
    if fee_bps >= FEE_DENOMINATOR:
        raise InvalidFee("Cannot price an exact output with a 100% fee.")

    u64_denom = np.uint64(FEE_DENOMINATOR)
    numerator = checked_mul(checked_mul(np.uint64(reserve_in), np.uint64(amount_out)), u64_denom)
    denominator = checked_mul(np.uint64(reserve_out - amount_out), u64_denom - np.uint64(fee_bps))

    return narrow(checked_add(numerator // denominator, _ONE))


# --- Liquidity issuance ---

def calculate_initial_lp(amount_x: np.uint32, amount_y: np.uint32) -> np.uint32:
    """
    LP minted by the first deposit into an empty pool.

    Each amount is square-rooted on its own, so the result can be a little
    below floor(sqrt(amount_x * amount_y)).
    """
    _verify_uint32(amount_x, "amount_x")
    _verify_uint32(amount_y, "amount_y")
    return narrow(checked_mul(np.uint64(sqrt_u32(amount_x)), np.uint64(sqrt_u32(amount_y))))


def calculate_subsequent_lp(amount_x: np.uint32, amount_y: np.uint32, reserve_x: np.uint32,
                            reserve_y: np.uint32, lp_supply: np.uint32) -> np.uint32:
    """
    LP minted for a deposit into a live pool, proportional to whichever side
    contributes the smaller share of its reserve. Over-supplying one side
    earns nothing extra.

    Raises:
        ReservesEmpty: If either reserve is zero
        ZeroAmount: If either amount is zero
    """
    _verify_uint32(amount_x, "amount_x")
    _verify_uint32(amount_y, "amount_y")
    _verify_uint32(reserve_x, "reserve_x")
    _verify_uint32(reserve_y, "reserve_y")
    _verify_uint32(lp_supply, "lp_supply")

    if reserve_x == 0 or reserve_y == 0:
        raise ReservesEmpty("Cannot add liquidity to an uninitialized pool.")
    if amount_x == 0 or amount_y == 0:
        raise ZeroAmount("Deposit amounts must be positive.")

    u64_supply = np.uint64(lp_supply)

    # Cross-multiplied so no rounding happens before the comparison.
    x_share = checked_mul(np.uint64(amount_x), np.uint64(reserve_y))
    y_share = checked_mul(np.uint64(reserve_x), np.uint64(amount_y))

    if x_share < y_share:
        minted = checked_mul(np.uint64(amount_x), u64_supply) // np.uint64(reserve_x)
    else:
        minted = checked_mul(np.uint64(amount_y), u64_supply) // np.uint64(reserve_y)
    return narrow(minted)


# --- Liquidity removal ---

def calculate_remove_liquidity(lp_amount: np.uint32, lp_supply: np.uint32, reserve_x: np.uint32,
                               reserve_y: np.uint32) -> tuple[np.uint32, np.uint32]:
    """
    Payout of both reserves for burning lp_amount shares, floored per side.

    Raises:
        ReservesEmpty: If lp_supply is zero
        InsufficientLiquidity: If lp_amount exceeds lp_supply
    """
    _verify_uint32(lp_amount, "lp_amount")
    _verify_uint32(lp_supply, "lp_supply")
    _verify_uint32(reserve_x, "reserve_x")
    _verify_uint32(reserve_y, "reserve_y")

    if lp_supply == 0:
        raise ReservesEmpty("Cannot remove liquidity from a pool with no LP supply.")
    if lp_amount > lp_supply:
        raise InsufficientLiquidity("Cannot remove more liquidity than exists.")

    u64_lp = np.uint64(lp_amount)
    u64_supply = np.uint64(lp_supply)

    amount_x = checked_mul(u64_lp, np.uint64(reserve_x)) // u64_supply
    amount_y = checked_mul(u64_lp, np.uint64(reserve_y)) // u64_supply
    return narrow(amount_x), narrow(amount_y)


# --- Example Usage ---
if __name__ == '__main__':
    reserve_x = np.uint32(1_000)
    reserve_y = np.uint32(1_000)
    fee = np.uint32(30)

    lp_supply = calculate_initial_lp(reserve_x, reserve_y)
    print(f"Seeded pool with {reserve_x}/{reserve_y}, minted {lp_supply} LP")
    print("-" * 30)

    amount_in = np.uint32(100)
    amount_out = calculate_swap_output(amount_in, reserve_x, reserve_y, fee)
    reserve_x += amount_in
    reserve_y -= amount_out
    print(f"Swapped {amount_in} X for {amount_out} Y (fee {fee}/{fee_denominator()} bps)")
    print(f"k = {constant_product(reserve_x, reserve_y)}")
    print("-" * 30)

    minted = calculate_subsequent_lp(np.uint32(110), np.uint32(90), reserve_x, reserve_y, lp_supply)
    print(f"Deposited 110 X / 90 Y, minted {minted} LP")
    print("-" * 30)

    out_x, out_y = calculate_remove_liquidity(minted, lp_supply + minted,
                                              reserve_x + np.uint32(110), reserve_y + np.uint32(90))
    print(f"Burned {minted} LP for {out_x} X / {out_y} Y")
