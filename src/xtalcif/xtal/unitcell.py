"""Classes for handling unit cell transformation."""

import numpy as np


class UnitCell:

    """Class for storing and performing calculations on unit cell parameters.
    The constructor expects alpha, beta, and gamma to be in degrees.

    The Cartesian frame is the standard crystallographic one: a along x,
    b in the xy-plane.
    """

    def __init__(self, a=1.0, b=1.0, c=1.0, alpha=90.0, beta=90.0, gamma=90.0):
        self.a = float(a)
        self.b = float(b)
        self.c = float(c)

        self.alpha = float(alpha)
        self.beta = float(beta)
        self.gamma = float(gamma)

        self._sin_alpha = np.sin(np.deg2rad(self.alpha))
        self._sin_beta = np.sin(np.deg2rad(self.beta))
        self._sin_gamma = np.sin(np.deg2rad(self.gamma))

        self._cos_alpha = np.cos(np.deg2rad(self.alpha))
        self._cos_beta = np.cos(np.deg2rad(self.beta))
        self._cos_gamma = np.cos(np.deg2rad(self.gamma))

        self.orth_to_frac = self.calc_fractionalization_matrix()
        self.frac_to_orth = self.calc_orthogonalization_matrix()

    @classmethod
    def from_parameters(cls, cell):
        """Build a UnitCell from CellParameters.

        Raises:
            ValueError: if a parameter is missing or the six parameters do
                not describe a cell with a positive volume.
        """
        if cell is None or not cell.is_complete():
            missing = "all" if cell is None else ", ".join(cell.missing) or "non-finite values"
            raise ValueError(f"Incomplete unit cell ({missing})")
        a, b, c, alpha, beta, gamma = cell.parameters
        if min(a, b, c) <= 0:
            raise ValueError(f"Cell lengths must be positive: a={a}, b={b}, c={c}")
        for name, angle in (("alpha", alpha), ("beta", beta), ("gamma", gamma)):
            if not 0.0 < angle < 180.0:
                raise ValueError(f"Cell angle {name}={angle} outside (0, 180)")
        if cls.calc_radicand(alpha, beta, gamma) <= 0:
            raise ValueError(
                f"Cell angles alpha={alpha}, beta={beta}, gamma={gamma} do not form a cell"
            )
        return cls(a, b, c, alpha, beta, gamma)

    def __str__(self):
        return "UnitCell(a=%f, b=%f, c=%f, alpha=%f, beta=%f, gamma=%f)" % (
            self.a,
            self.b,
            self.c,
            self.alpha,
            self.beta,
            self.gamma,
        )

    @staticmethod
    def calc_radicand(alpha, beta, gamma):
        """1 - cos²α - cos²β - cos²γ + 2·cosα·cosβ·cosγ, angles in degrees."""
        ca, cb, cg = np.cos(np.deg2rad([alpha, beta, gamma]))
        return 1 - ca * ca - cb * cb - cg * cg + 2 * ca * cb * cg

    def calc_v(self):
        """Calculates the volume of the rhombohedral created by the
        unit vectors a1/|a1|, a2/|a2|, a3/|a3|.
        """
        return np.sqrt(
            1
            - (self._cos_alpha * self._cos_alpha)
            - (self._cos_beta * self._cos_beta)
            - (self._cos_gamma * self._cos_gamma)
            + (2 * self._cos_alpha * self._cos_beta * self._cos_gamma)
        )

    def calc_volume(self):
        """Calculates the volume of the unit cell."""
        return self.a * self.b * self.c * self.calc_v()

    def calc_orthogonalization_matrix(self):
        """Fractional to Cartesian coordinates."""

        v = self.calc_v()

        f11 = self.a
        f12 = self.b * self._cos_gamma
        f13 = self.c * self._cos_beta
        f22 = self.b * self._sin_gamma
        f23 = (self.c * (self._cos_alpha - self._cos_beta * self._cos_gamma)) / (
            self._sin_gamma
        )
        f33 = (self.c * v) / self._sin_gamma

        frac_to_orth = np.array(
            [[f11, f12, f13], [0.0, f22, f23], [0.0, 0.0, f33]], float
        )

        return frac_to_orth

    def calc_fractionalization_matrix(self):
        """Cartesian to fractional coordinates."""

        v = self.calc_v()

        o11 = 1.0 / self.a
        o12 = -self._cos_gamma / (self.a * self._sin_gamma)
        o13 = (self._cos_gamma * self._cos_alpha - self._cos_beta) / (
            self.a * v * self._sin_gamma
        )
        o22 = 1.0 / (self.b * self._sin_gamma)
        o23 = (self._cos_gamma * self._cos_beta - self._cos_alpha) / (
            self.b * v * self._sin_gamma
        )
        o33 = self._sin_gamma / (self.c * v)

        orth_to_frac = np.array(
            [[o11, o12, o13], [0.0, o22, o23], [0.0, 0.0, o33]], float
        )

        return orth_to_frac

    def calc_frac_to_orth(self, v):
        """Calculates and returns the orthogonal coordinate vector of
        fractional vector v.
        """
        return np.dot(self.frac_to_orth, v)

    def frac_to_orth_rows(self, xyz):
        """Convert an (n, 3) array of fractional coordinates row by row."""
        return np.asarray(xyz, float) @ self.frac_to_orth.T

