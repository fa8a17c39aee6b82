# Copyright (c) 2022 R. Tohid (@rtohid)
#
# Distributed under the Boost Software License, Version 1.0. (See accompanying
# file LICENSE_1_0.txt or copy at http://www.boost.org/LICENSE_1_0.txt)

from qiskit.transpiler.exceptions import TranspilerError


class QxTranspilerError(TranspilerError):
    """Base class for errors raised by the routing engine."""


class ArchitectureError(QxTranspilerError):
    """Missing, malformed or inconsistent architecture description."""


class RoutingError(QxTranspilerError):
    """A circuit or graph the routing engine cannot handle."""
