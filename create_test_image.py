from pathlib import Path

from PIL import Image, ImageDraw

OUTPUT = Path("examples") / "test-input.png"

# White canvas with a black rectangle and a black circle
img = Image.new("RGBA", (200, 100), (255, 255, 255, 255))
draw = ImageDraw.Draw(img)
draw.rectangle([20, 20, 79, 59], fill=(0, 0, 0, 255))
draw.ellipse([115, 25, 165, 75], fill=(0, 0, 0, 255))

OUTPUT.parent.mkdir(parents=True, exist_ok=True)
img.save(OUTPUT)
print(f"Created {OUTPUT}")
