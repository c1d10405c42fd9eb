"""
4x4 matrix and quaternion helpers.

Matrices are flat lists of 16 floats, row-major, using the column-vector
convention: translation lives in elements 3, 7 and 11. Quaternions are
(x, y, z, w) tuples.
"""

import math

IDENTITY_QUAT = (0.0, 0.0, 0.0, 1.0)

_SLERP_EPSILON = 1e-4


# ============================================================
# Matrix Math
# ============================================================

def mat4_identity():
    return [1.0, 0.0, 0.0, 0.0,
            0.0, 1.0, 0.0, 0.0,
            0.0, 0.0, 1.0, 0.0,
            0.0, 0.0, 0.0, 1.0]


def mat4_multiply(a, b):
    """Return a * b (b is applied first to a column vector)."""
    r = [0.0] * 16
    for i in range(4):
        for j in range(4):
            s = 0.0
            for k in range(4):
                s += a[i*4+k] * b[k*4+j]
            r[i*4+j] = s
    return r


def mat4_from_trs(translation=(0.0, 0.0, 0.0), rotation=IDENTITY_QUAT, scale=(1.0, 1.0, 1.0)):
    """Build a local transform from translation, (x, y, z, w) rotation and scale."""
    x, y, z, w = rotation
    tx, ty, tz = translation
    sx, sy, sz = scale
    xx, yy, zz = x*x, y*y, z*z
    xy, xz, yz = x*y, x*z, y*z
    wx, wy, wz = w*x, w*y, w*z
    return [
        (1 - 2*(yy + zz))*sx, 2*(xy - wz)*sy,       2*(xz + wy)*sz,       tx,
        2*(xy + wz)*sx,       (1 - 2*(xx + zz))*sy, 2*(yz - wx)*sz,       ty,
        2*(xz - wy)*sx,       2*(yz + wx)*sy,       (1 - 2*(xx + yy))*sz, tz,
        0.0, 0.0, 0.0, 1.0,
    ]


def mat3_to_quat(m):
    """Rotation quaternion of the upper-left 3x3 of m, assumed orthonormal."""
    a1, a2, a3 = m[0], m[1], m[2]
    b1, b2, b3 = m[4], m[5], m[6]
    c1, c2, c3 = m[8], m[9], m[10]

    trace = a1 + b2 + c3
    if trace > 0:
        s = math.sqrt(1.0 + trace) * 2.0
        return ((c2 - b3) / s, (a3 - c1) / s, (b1 - a2) / s, 0.25 * s)
    if a1 > b2 and a1 > c3:
        s = math.sqrt(1.0 + a1 - b2 - c3) * 2.0
        return (0.25 * s, (b1 + a2) / s, (a3 + c1) / s, (c2 - b3) / s)
    if b2 > c3:
        s = math.sqrt(1.0 + b2 - a1 - c3) * 2.0
        return ((b1 + a2) / s, 0.25 * s, (c2 + b3) / s, (a3 - c1) / s)
    s = math.sqrt(1.0 + c3 - a1 - b2) * 2.0
    return ((a3 + c1) / s, (c2 + b3) / s, 0.25 * s, (b1 - a2) / s)


def decompose_no_scaling(m):
    """Split m into (translation, rotation). Any scale in m is not removed."""
    return (m[3], m[7], m[11]), mat3_to_quat(m)


# ============================================================
# Interpolation
# ============================================================

def lerp3(a, b, t):
    return (a[0] + (b[0] - a[0]) * t,
            a[1] + (b[1] - a[1]) * t,
            a[2] + (b[2] - a[2]) * t)


def quat_slerp(q0, q1, t):
    """Spherical linear interpolation along the shortest arc."""
    cosom = q0[0]*q1[0] + q0[1]*q1[1] + q0[2]*q1[2] + q0[3]*q1[3]

    if cosom < 0.0:
        cosom = -cosom
        q1 = (-q1[0], -q1[1], -q1[2], -q1[3])

    if 1.0 - cosom > _SLERP_EPSILON:
        omega = math.acos(min(cosom, 1.0))
        sinom = math.sin(omega)
        sclp = math.sin((1.0 - t) * omega) / sinom
        sclq = math.sin(t * omega) / sinom
    else:
        # Nearly parallel: plain lerp is accurate enough
        sclp = 1.0 - t
        sclq = t

    return (sclp*q0[0] + sclq*q1[0],
            sclp*q0[1] + sclq*q1[1],
            sclp*q0[2] + sclq*q1[2],
            sclp*q0[3] + sclq*q1[3])
