"""Read z/OS XMIT files and extract the members of the transmitted partitioned dataset."""

__version__ = "0.1.0"