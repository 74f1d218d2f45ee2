from __future__ import annotations

import json
from pathlib import Path

from transcript_harvester.main import app


def main(output_dir: Path = Path("openapi")) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    schema_path = output_dir / "openapi.json"
    schema_path.write_text(json.dumps(app.openapi(), indent=2), encoding="utf-8")
    print(f"Wrote OpenAPI schema to {schema_path}")
    return schema_path


if __name__ == "__main__":
    main()
