import numpy as np

# Signed 16-bit little-endian, whatever the host byte order
SAMPLE_DTYPE = np.dtype('<i2')


def decode_frame(buffer: bytes | bytearray | memoryview) -> np.ndarray:
    """Decode a raw capture buffer into int16 samples.

    A trailing odd byte is dropped. An empty buffer decodes to an empty array.
    """
    view = memoryview(buffer).cast('B')
    usable = len(view) - (len(view) % SAMPLE_DTYPE.itemsize)
    return np.frombuffer(view[:usable], dtype=SAMPLE_DTYPE).astype(np.int16)
