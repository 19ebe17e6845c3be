"""
Unit tests for the Kerberos descriptor object model.
"""

import copy

from state.kerberos import KerberosDescriptor


DESCRIPTOR = {
    "properties": {"realm": "EXAMPLE.COM"},
    "identities": [{"name": "spnego"}],
    "services": [
        {
            "name": "SPARK",
            "identities": [{"name": "sparkuser"}],
            "configurations": [
                {"livy-conf": {"livy.superusers": "zeppelin-c1", "livy.impersonation.enabled": "true"}},
                {"spark-defaults": {"spark.history.kerberos.enabled": "true"}},
            ],
        },
        {"name": "HDFS"},
    ],
}


class TestKerberosDescriptor:

    def test_from_dict_none_for_missing_data(self):
        assert KerberosDescriptor.from_dict(None) is None
        assert KerberosDescriptor.from_dict({}) is None

    def test_lookup_service_and_configuration(self):
        descriptor = KerberosDescriptor.from_dict(DESCRIPTOR)

        spark = descriptor.get_service("SPARK")
        assert spark.name == "SPARK"
        assert set(spark.configurations) == {"livy-conf", "spark-defaults"}
        assert spark.get_configuration("livy-conf").properties["livy.superusers"] == "zeppelin-c1"

    def test_absent_nodes_are_none(self):
        descriptor = KerberosDescriptor.from_dict(DESCRIPTOR)

        assert descriptor.get_service("SPARK2") is None
        assert descriptor.get_service("HDFS").get_configuration("hdfs-site") is None

    def test_remove_property_mutates_document(self):
        descriptor = KerberosDescriptor.from_dict(DESCRIPTOR)
        livy_conf = descriptor.get_service("SPARK").get_configuration("livy-conf")

        assert livy_conf.remove_property("livy.superusers") is True
        assert livy_conf.remove_property("livy.superusers") is False

        data = descriptor.to_dict()
        assert data["services"][0]["configurations"][0] == {
            "livy-conf": {"livy.impersonation.enabled": "true"}
        }

    def test_unmodelled_keys_round_trip(self):
        original = copy.deepcopy(DESCRIPTOR)
        descriptor = KerberosDescriptor.from_dict(DESCRIPTOR)

        assert descriptor.to_dict() == original
        assert descriptor.properties == {"realm": "EXAMPLE.COM"}

    def test_source_data_not_mutated(self):
        original = copy.deepcopy(DESCRIPTOR)
        descriptor = KerberosDescriptor.from_dict(DESCRIPTOR)
        descriptor.get_service("SPARK").get_configuration("livy-conf").remove_property("livy.superusers")

        assert DESCRIPTOR == original
