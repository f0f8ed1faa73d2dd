"""Numpy array manipulation utilities."""
# Copyright © 2019 Eric Langlois
#
# Permission is hereby granted, free of charge, to any person obtaining
# a copy of this software and associated documentation files (the "Software"),
# to deal in the Software without restriction, including without limitation
# the rights to use, copy, modify, merge, publish, distribute, sublicense,
# and/or sell copies of the Software, and to permit persons to whom the
# Software is furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included
# in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES
# OF MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT.
# IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM,
# DAMAGES OR OTHER LIABILITY, WHETHER IN AN ACTION OF CONTRACT,
# TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN CONNECTION WITH THE SOFTWARE
# OR THE USE OR OTHER DEALINGS IN THE SOFTWARE.

import numpy as np

#################
# Vectorization #
#################


def vec(a):
    """Column-major vectorization of a matrix.

    Args:
        a: An array of shape [M, N].

    Returns:
        An array of shape [M * N] where element `i + j * M` is `a[i, j]`.
    """
    return np.reshape(a, -1, order="F")


def unvec(v, shape):
    """Inverse of `vec`: reshape a vector into a matrix in column-major order."""
    return np.reshape(v, shape, order="F")


##################
# Linear Algebra #
##################


def commutation_matrix(rows, cols):
    """The commutation matrix K with `K @ vec(A) == vec(A.T)`.

    Args:
        rows: Number of rows of A.
        cols: Number of columns of A.

    Returns:
        A permutation matrix of shape [rows * cols, rows * cols].
    """
    size = rows * cols
    # position[i, j] is the index of A[i, j] in vec(A)
    position = unvec(np.arange(size), (rows, cols))
    K = np.zeros((size, size))
    K[np.arange(size), vec(position.T)] = 1
    return K


def symmetrize_jacobian(jacobian, size):
    """Jacobian of (X + X') / 2 given the Jacobian of a square matrix X.

    Args:
        jacobian: Jacobian of vec(X). An array of shape [size * size, N].
        size: The number of rows (and columns) of X.

    Returns:
        An array of shape [size * size, N].
    """
    return (jacobian + commutation_matrix(size, size) @ jacobian) / 2


############
# Indexing #
############


def vec_block_indices(shape, rows, cols, transpose=False):
    """Positions within vec(A) of the elements of a sub-block of A.

    Used to read or write the rows of a Jacobian that correspond to a block of
    a matrix-valued output, without manual linear index arithmetic.

    Args:
        shape: The shape [M, N] of A.
        rows: Row index of the block. Any numpy index over range(M).
        cols: Column index of the block. Any numpy index over range(N).
        transpose: If True, return the positions of the transposed partners
            of the block elements, i.e. of `A[c, r]` for each block element
            `A[r, c]`. Requires a square A.

    Returns:
        An integer array of length `len(rows) * len(cols)`, ordered as
        vec(A[rows, cols]).
    """
    num_rows, num_cols = shape
    rows = np.arange(num_rows)[rows]
    cols = np.arange(num_cols)[cols]
    position = unvec(np.arange(num_rows * num_cols), shape)
    if transpose:
        if num_rows != num_cols:
            raise ValueError(f"Cannot transpose blocks of non-square shape {shape}")
        position = position.T
    return vec(position[np.ix_(rows, cols)])
