import unittest

from config import (
    Config,
    CURRENT_CONFIG_VERSION,
    DEFAULT_NOTE_HUES,
    apply_dict_to_dataclass,
    migrate_config,
)


class TestConfigMigration(unittest.TestCase):
    def test_missing_version_bumps(self):
        cfg = Config()
        data = {
            # version intentionally omitted to simulate legacy file
            "lighting": {},
            "analysis": {},
        }

        apply_dict_to_dataclass(cfg, data)
        migrate_config(cfg, data.get("version"))

        self.assertEqual(cfg.version, CURRENT_CONFIG_VERSION)
        self.assertEqual(cfg.lighting.note_hues, DEFAULT_NOTE_HUES)

    def test_none_values_are_sanitized(self):
        cfg = Config()
        data = {
            "version": 0,
            "lighting": {"note_hues": None, "hue_light_ids": None},
            "analysis": {"volume_history_length": None},
            "bridge": {"dry_run": None},
            "log_level": None,
        }

        apply_dict_to_dataclass(cfg, data)
        migrate_config(cfg, data.get("version"))

        self.assertEqual(cfg.lighting.note_hues, DEFAULT_NOTE_HUES)
        self.assertEqual(cfg.lighting.hue_light_ids, [cfg.lighting.primary_light_id])
        self.assertEqual(cfg.analysis.volume_history_length, 8)
        self.assertFalse(cfg.bridge.dry_run)
        self.assertEqual(cfg.log_level, "INFO")

    def test_ranges_are_clamped(self):
        cfg = Config()
        apply_dict_to_dataclass(cfg, {
            "analysis": {"volume_history_length": 0},
            "lighting": {
                "max_brightness": 999,
                "min_brightness": -5,
                "min_volume": 500.0,
                "max_volume": 100.0,
                "note_hues": {"A": 70000, "B": -1},
            },
        })
        migrate_config(cfg, 1)

        self.assertEqual(cfg.analysis.volume_history_length, 1)
        self.assertEqual(cfg.lighting.max_brightness, 254)
        self.assertEqual(cfg.lighting.min_brightness, 0)
        self.assertGreater(cfg.lighting.max_volume, cfg.lighting.min_volume)
        self.assertEqual(cfg.lighting.note_hues, {"A": 65535, "B": 0})

    def test_preserves_custom_values(self):
        cfg = Config()
        data = {
            "version": 1,
            "audio": {"sample_rate": 44100, "block_size": 512},
            "lighting": {"primary_light_id": 5, "hue_light_ids": [5, 6]},
            "bridge": {"host": "10.0.0.9"},
        }

        apply_dict_to_dataclass(cfg, data)
        migrate_config(cfg, data.get("version"))

        self.assertEqual(cfg.audio.sample_rate, 44100)
        self.assertEqual(cfg.audio.block_size, 512)
        self.assertEqual(cfg.lighting.primary_light_id, 5)
        self.assertEqual(cfg.lighting.hue_light_ids, [5, 6])
        self.assertEqual(cfg.bridge.host, "10.0.0.9")

    def test_unknown_keys_are_ignored(self):
        cfg = Config()
        apply_dict_to_dataclass(cfg, {"strobe": {"mode": 2}, "audio": {"gain": 3.0}})
        self.assertFalse(hasattr(cfg, "strobe"))
        self.assertFalse(hasattr(cfg.audio, "gain"))

    def test_default_instances_do_not_share_tables(self):
        a, b = Config(), Config()
        a.lighting.note_hues["A"] = 1
        self.assertEqual(b.lighting.note_hues["A"], DEFAULT_NOTE_HUES["A"])


if __name__ == "__main__":
    unittest.main()
