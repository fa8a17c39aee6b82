from collections import defaultdict

from qxtranspiler.architectures import get_architecture
from qxtranspiler.routing.fixed5 import transform_fixed5
from qxtranspiler.routing.table import get_engine
from qxtranspiler.utils import Profile, random_cnot_circuit

from matplotlib import pyplot as plt

num_runs = 10
circuit_sizes = [10, 20, 40, 80, 160]

architectures = ("qx2", "qx4", "qx5", "qx20")


def route_table(circuit, arch_name):
    return get_engine(arch_name).expand(circuit)


def route_fixed(circuit, arch_name, template):
    methods = get_architecture(arch_name).method_matrix()
    return transform_fixed5(circuit, methods, template)


def get_func_name(func, extra):
    if not callable(func):
        raise TypeError(f"{func} is not a callable")
    if 'route_table' == func.__name__:
        return "Routing Table"
    elif 'route_fixed' == func.__name__:
        return "Template" if extra[0] else "Swap"
    else:
        return (func.__name__)


runs = defaultdict(list)
for name in architectures:
    arch = get_architecture(name)
    variants = [(route_table, ())]
    if arch.methods is not None:
        variants += [(route_fixed, (False, )), (route_fixed, (True, ))]
    for num_gates in circuit_sizes:
        circuits = [
            random_cnot_circuit(min(arch.size(), 5), num_gates, seed=seed)
            for seed in range(num_runs)
        ]
        for func, extra in variants:
            run = Profile(func)
            for circuit in circuits:
                run.add_run(circuit, name, *extra)
            runs[(name, get_func_name(func, extra))].append(run)

plt.figure(1, figsize=(16, 9))
for (name, algorithm), value in sorted(runs.items()):
    gates = [run.average_value(lambda r: r.gate_count) for run in value]
    plt.plot(circuit_sizes, gates, '-D', label=f'{name}/{algorithm}')

plt.legend()
plt.grid(True)
plt.xlabel('Input gates')
plt.ylabel('Mapped gates')
plt.title(f'Mapped circuit size (average of {num_runs} runs)')
plt.savefig("gates.png")

plt.figure(2, figsize=(16, 9))
for (name, algorithm), value in sorted(runs.items()):
    plt.plot(circuit_sizes, [run.average_time() for run in value], '--s',
             label=f'{name}/{algorithm}')

plt.legend()
plt.grid(True)
plt.xlabel('Input gates')
plt.ylabel('Time (s)')
plt.title(f'Mapping time (average of {num_runs} runs)')
plt.savefig("time.png")
