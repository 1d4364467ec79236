"""
Buffer and Operation Example for PyDotBuffer.

Walks a device buffer through writes, uploads, named operations and
persistence. Runs on CUDA when available and on the CPU backend otherwise.
"""

from __future__ import annotations

from pydotbuffer import (
    DataType,
    DeviceBuffer,
    OpFamily,
    get_backend,
    get_op_registry,
    persist,
    resolve,
    restore,
)


def run_buffer_ops_example() -> None:
    """Run the buffer and operation example."""
    print("=" * 60)
    print("PyDotBuffer Buffer and Operation Example")
    print("=" * 60)

    backend = get_backend()
    print(f"\nUsing backend: {backend!r}")

    print("\n1. Creating buffer...")
    x = DeviceBuffer.from_values([1.0, 2.0, 3.0, 4.0], DataType.FLOAT32, backend=backend)
    print(f"   {x!r}")

    print("\n2. Uploading and writing on the host...")
    x.upload()
    x.assign([2], [9.0])
    print(f"   State after write: {x.state.name}")
    x.upload()
    print(f"   State after upload: {x.state.name}")

    print("\n3. Running accumulations...")
    for name in ("sum", "max", "norm2", "var"):
        result = resolve(OpFamily.ACCUMULATION, name, x).execute()
        print(f"   {name}(x) = {result:.4f}")

    print("\n4. Running transforms into an output buffer...")
    y = DeviceBuffer(x.length, DataType.FLOAT32, backend=backend)
    for name in ("pow", "relu", "softmax"):
        op = resolve(OpFamily.TRANSFORM, name, x, y)
        op.execute()
        print(f"   {name}{dict(op.params) or ''}: {y.as_float().round(4).tolist()}")

    print("\n5. Persisting and restoring...")
    data = persist(x)
    restored = restore(data, DataType.FLOAT32)
    print(f"   {len(data)} bytes -> {restored.as_float().tolist()}")

    print("\n6. Releasing device memory...")
    for buffer in (x, y, restored):
        buffer.release()
    print(f"   Released: {x.is_released}")

    registry = get_op_registry()
    print(f"\nAvailable accumulations: {', '.join(registry.names('accumulation'))}")
    print(f"Available transforms: {', '.join(registry.names('transform'))}")

    print("\n" + "=" * 60)
    print("Example completed successfully!")
    print("=" * 60)


if __name__ == "__main__":
    run_buffer_ops_example()
