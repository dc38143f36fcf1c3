"""tools/check_data.py のテスト。"""

import json
import shutil

from tools.check_data import main


class TestCheckData:
    """データ検証 CLI。"""

    def test_shipped_data_passes_strict(self, data_dir, capsys):
        assert main(["--data-dir", str(data_dir), "--strict"]) == 0

        out = capsys.readouterr().out
        assert "動物: 16 種" in out
        assert "出題可能な問題ファミリー: 11 件" in out

    def test_missing_required_file_fails(self, tmp_path, capsys):
        (tmp_path / "categories.json").write_text("[]", encoding="utf-8")

        assert main(["--data-dir", str(tmp_path)]) == 1
        assert "[ERROR]" in capsys.readouterr().out

    def test_degraded_and_stale_data_fail_only_when_strict(self, tmp_path, data_dir, capsys):
        for name in ("animals.json", "categories.json"):
            shutil.copy(data_dir / name, tmp_path / name)
        animals = json.loads((tmp_path / "animals.json").read_text(encoding="utf-8"))
        animals[0]["related_animals"] = ["ghost_animal"]
        (tmp_path / "animals.json").write_text(json.dumps(animals), encoding="utf-8")

        assert main(["--data-dir", str(tmp_path)]) == 0
        assert main(["--data-dir", str(tmp_path), "--strict"]) == 1

        out = capsys.readouterr().out
        assert "任意データを読み込めませんでした: habitats" in out
        assert "参照切れ animals/cheetah: ghost_animal" in out
