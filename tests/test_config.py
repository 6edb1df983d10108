import pytest

from nodedisk.config import (
    DEFAULT_CONFIG_FILE_PATH,
    FilterConfig,
    NDMOptions,
    NodeDiskManagerConfig,
    ProbeConfig,
    load_ndm_config,
    parse_ndm_config,
)

VALID_JSON = """{
    "probeconfigs": [
        {
        "key": "udev-probe",
        "name": "udev probe",
        "state": "true"
        }
    ],
    "filterconfigs": [
        {
        "key": "os-disk-exclude-filter",
        "name": "os disk exclude filter",
        "state": "true"
        }
    ]
}"""

VALID_YAML = """
probeconfigs:
  - key: udev-probe
    name: udev probe
    state: true
filterconfigs:
  - key: os-disk-exclude-filter
    name: os disk exclude filter
    state: true
    include: ""
    exclude: /,/etc/hosts,/boot
"""


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_ndm_config(tmp_path / "fakendm.config")


def test_valid_json(tmp_path):
    path = tmp_path / "fakendm.config"
    path.write_text(VALID_JSON)
    expected = NodeDiskManagerConfig(
        probe_configs=[ProbeConfig(key="udev-probe", name="udev probe", state="true")],
        filter_configs=[
            FilterConfig(
                key="os-disk-exclude-filter",
                name="os disk exclude filter",
                state="true",
            )
        ],
    )
    assert load_ndm_config(path) == expected


def test_valid_yaml(tmp_path):
    path = tmp_path / "fakendm-yaml.config"
    path.write_text(VALID_YAML)
    config = load_ndm_config(str(path))
    assert len(config.probe_configs) == 1
    assert config.probe_configs[0] == ProbeConfig(
        key="udev-probe", name="udev probe", state="true"
    )
    assert len(config.filter_configs) == 1
    assert config.filter_configs[0] == FilterConfig(
        key="os-disk-exclude-filter",
        name="os disk exclude filter",
        state="true",
        include="",
        exclude="/,/etc/hosts,/boot",
    )


def test_json_with_wrong_type_is_rejected():
    with pytest.raises(ValueError):
        parse_ndm_config(b'{"probeconfigs": [{"key": "udev-probe", "state": true}]}')


def test_empty_json_object_gives_empty_config():
    assert parse_ndm_config("{}") == NodeDiskManagerConfig()


def test_json_keys_match_case_insensitively():
    config = parse_ndm_config('{"ProbeConfigs": [{"Key": "udev-probe"}]}')
    assert config.probe_configs == [ProbeConfig(key="udev-probe")]


def test_non_mapping_document_is_rejected():
    with pytest.raises(ValueError):
        parse_ndm_config("- just\n- a list\n")


def test_default_options_use_default_path():
    options = NDMOptions()
    assert options.config_file_path == DEFAULT_CONFIG_FILE_PATH
    assert options.feature_gate == []