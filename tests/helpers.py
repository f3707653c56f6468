import io

from PIL import Image


def make_image_bytes(fmt: str, size=(64, 48), mode="RGB", **save_kwargs) -> bytes:
    """Render a small gradient image so lossy encoders have something to work on."""
    img = Image.new(mode, size)
    width, height = size
    pixels = img.load()
    for x in range(width):
        for y in range(height):
            r = (x * 255) // max(width - 1, 1)
            g = (y * 255) // max(height - 1, 1)
            b = ((x + y) * 127) // max(width + height - 2, 1)
            if mode == "RGBA":
                pixels[x, y] = (r, g, b, 200)
            else:
                pixels[x, y] = (r, g, b)
    buffer = io.BytesIO()
    img.save(buffer, format=fmt, **save_kwargs)
    return buffer.getvalue()


def write_image(path, fmt: str, **kwargs) -> str:
    data = make_image_bytes(fmt, **kwargs)
    with open(path, "wb") as f:
        f.write(data)
    return str(path)
