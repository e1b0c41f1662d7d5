"""
Unit tests for the metadata store.
"""

from ioc_engine.metadata import (define_metadata, delete_metadata, get_metadata,
                                 get_own_metadata, has_metadata)


class TestOwnMetadata:
    """Test metadata defined directly on a target."""

    def test_define_and_read(self):
        class Target:
            pass

        define_metadata("app:role", "admin", Target)
        assert get_own_metadata("app:role", Target) == "admin"

    def test_missing_returns_default(self):
        class Target:
            pass

        assert get_own_metadata("app:role", Target) is None
        assert get_own_metadata("app:role", Target, default="none") == "none"

    def test_member_scoped_metadata(self):
        class Target:
            def handle(self):
                pass

        define_metadata("app:role", "reader", Target, member="handle")
        assert get_own_metadata("app:role", Target, member="handle") == "reader"
        assert get_own_metadata("app:role", Target) is None

    def test_non_weakrefable_target(self):
        """Targets that cannot be weakly referenced never carry metadata."""
        assert get_own_metadata("app:role", 42) is None
        assert delete_metadata("app:role", 42) is False

    def test_functions_carry_metadata(self):
        def handler():
            pass

        define_metadata("app:cached", True, handler)
        assert get_metadata("app:cached", handler) is True


class TestInheritedMetadata:
    """Test MRO lookup through get_metadata."""

    def test_subclass_sees_base_metadata(self):
        class Base:
            pass

        class Child(Base):
            pass

        define_metadata("app:tag", "base", Base)
        assert get_metadata("app:tag", Child) == "base"
        assert get_own_metadata("app:tag", Child) is None

    def test_subclass_overrides_base_metadata(self):
        class Base:
            pass

        class Child(Base):
            pass

        define_metadata("app:tag", "base", Base)
        define_metadata("app:tag", "child", Child)
        assert get_metadata("app:tag", Child) == "child"

    def test_instances_use_their_class(self):
        class Target:
            pass

        define_metadata("app:tag", 1, Target)
        assert get_metadata("app:tag", Target()) == 1
        assert has_metadata("app:tag", Target())

    def test_falsy_payload_counts_as_present(self):
        class Target:
            pass

        define_metadata("app:tag", None, Target)
        assert has_metadata("app:tag", Target)


class TestDeleteMetadata:
    """Test removal of metadata."""

    def test_delete(self):
        class Target:
            pass

        define_metadata("app:tag", 1, Target)
        assert delete_metadata("app:tag", Target) is True
        assert not has_metadata("app:tag", Target)
        assert delete_metadata("app:tag", Target) is False
