"""Tests for the iSCSI domain types and their dictionary codecs."""
import pytest

from iscsi_plist.types import (
    Auth,
    AuthMethod,
    ConnectionConfig,
    DiscoveryRecord,
    Portal,
    SessionConfig,
    Target,
)


class TestTarget:
    """Tests for Target."""

    def test_to_dict(self):
        """Targets encode their IQN and alias."""
        target = Target(iqn="iqn.2020-01.com.example:disk1", alias="disk one")

        assert target.to_dict() == {
            "Target IQN": "iqn.2020-01.com.example:disk1",
            "Target Alias": "disk one",
        }

    def test_from_dict_minimal(self):
        """The alias is optional."""
        target = Target.from_dict({"Target IQN": "iqn.x"})

        assert target == Target(iqn="iqn.x", alias="")

    def test_from_dict_requires_iqn(self):
        """A target dictionary without an IQN is rejected."""
        with pytest.raises(KeyError):
            Target.from_dict({"Target Alias": "orphan"})


class TestPortal:
    """Tests for Portal."""

    def test_defaults(self):
        """Portals default to the well-known iSCSI port."""
        portal = Portal(address="10.0.0.5")

        assert portal.port == "3260"
        assert portal.host_interface == ""

    def test_from_dict_numeric_port(self):
        """Numeric ports from hand-edited files are normalized to strings."""
        portal = Portal.from_dict({"Address": "10.0.0.5", "Port": 3261})

        assert portal.port == "3261"


class TestSessionConfig:
    """Tests for SessionConfig."""

    def test_from_dict_defaults(self):
        """Missing session parameters take their defaults."""
        assert SessionConfig.from_dict({}) == SessionConfig()

    def test_to_dict(self):
        config = SessionConfig(error_recovery_level=1, target_portal_group_tag=3, max_connections=2)

        assert config.to_dict() == {
            "Error Recovery Level": 1,
            "Target Portal Group Tag": 3,
            "Maximum Connections": 2,
        }


class TestConnectionConfig:
    """Tests for ConnectionConfig."""

    def test_from_dict(self):
        config = ConnectionConfig.from_dict({"Header Digest": True})

        assert config.header_digest is True
        assert config.data_digest is False


class TestAuth:
    """Tests for Auth and AuthMethod."""

    def test_none(self):
        auth = Auth.none()

        assert auth.method is AuthMethod.NONE
        assert not auth.is_chap

    def test_chap(self):
        auth = Auth.chap("user", "secret")

        assert auth.is_chap
        assert auth.chap_user == "user"
        assert auth.chap_secret == "secret"

    def test_method_from_tag(self):
        """Only the literal CHAP tag maps to CHAP."""
        assert AuthMethod.from_tag("CHAP") is AuthMethod.CHAP
        assert AuthMethod.from_tag("None") is AuthMethod.NONE
        assert AuthMethod.from_tag("chap") is AuthMethod.NONE
        assert AuthMethod.from_tag(None) is AuthMethod.NONE


class TestDiscoveryRecord:
    """Tests for DiscoveryRecord."""

    def test_add_portal_groups_by_tag(self):
        """Portals are grouped per target and portal group tag."""
        record = DiscoveryRecord()
        record.add_portal("iqn.t1", 1, Portal(address="10.0.0.5"))
        record.add_portal("iqn.t1", 1, Portal(address="10.0.0.6"))
        record.add_portal("iqn.t1", 2, Portal(address="10.0.0.7"))

        assert record.target_iqns() == ["iqn.t1"]
        assert record.portal_group_tags("iqn.t1") == ["1", "2"]
        assert len(record.portals("iqn.t1", "1")) == 2

    def test_to_dict(self):
        record = DiscoveryRecord()
        record.add_portal("iqn.t1", 1, Portal(address="10.0.0.5"))

        assert record.to_dict() == {
            "iqn.t1": {
                "1": [{"Address": "10.0.0.5", "Port": "3260", "Host Interface": ""}],
            },
        }

    def test_from_dict_skips_malformed(self):
        """Entries that are not dictionaries are skipped."""
        record = DiscoveryRecord.from_dict({
            "iqn.good": {"1": [{"Address": "10.0.0.5"}]},
            "iqn.bad": "not a dict",
        })

        assert record.target_iqns() == ["iqn.good"]

    def test_from_dict_empty(self):
        assert DiscoveryRecord.from_dict(None) == DiscoveryRecord()

    def test_unknown_target(self):
        """Unknown targets have no groups and no portals."""
        record = DiscoveryRecord()

        assert record.portal_group_tags("iqn.none") == []
        assert record.portals("iqn.none", 1) == []
