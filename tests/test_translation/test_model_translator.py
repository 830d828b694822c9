"""
Tests for the ModelTranslator validate-then-map pipeline.
"""

import logging

import pytest

from model_translator import (
    Constraint,
    MappingOptions,
    ModelMapper,
    ModelTranslator,
    ModelValidator,
    PreconditionError,
    TranslationResult,
    ValidationError,
)


class Person:
    theID = None
    name = None
    age = None


def person_validator() -> ModelValidator:
    return ModelValidator(
        schema_map_model={
            "name": Constraint.string().min(3).max(10).required(),
            "age": Constraint.number().min(15).max(99),
        },
        schema_map_id={"theID": Constraint.integer().min(1).required()},
    )


@pytest.fixture
def translator():
    return ModelTranslator(Person, person_validator())


class TestWhole:
    """Tests for whole translation."""

    def test_single(self, translator):
        person = translator.whole({"name": "Gennova", "age": 18})
        assert isinstance(person, Person)
        assert person.name == "Gennova"
        assert person.age == 18

    def test_validated_value_is_mapped(self, translator):
        """Unknown keys are stripped before mapping."""
        person = translator.whole({"name": "Gennova", "junk": 1})
        assert not hasattr(person, "junk")

    def test_source_not_mutated(self, translator):
        source = {"name": "Gennova", "junk": 1}
        translator.whole(source)
        assert source == {"name": "Gennova", "junk": 1}

    def test_raises_without_callback(self, translator):
        with pytest.raises(ValidationError) as exc_info:
            translator.whole({"name": "ab"})
        assert exc_info.value.details[0].field == "name"

    def test_callback_receives_all_violations(self, translator):
        errors = []
        result = translator.whole({"name": "ab", "age": 5}, error_callback=errors.append)
        assert result is None
        assert len(errors) == 1
        assert isinstance(errors[0], ValidationError)
        assert [e.field for e in errors[0].details] == ["name", "age"]

    def test_options_object(self, translator):
        errors = []
        result = translator.whole({"name": "ab"}, MappingOptions(error_callback=errors.append))
        assert result is None
        assert len(errors) == 1

    def test_validation_disabled_per_call(self, translator):
        person = translator.whole({"name": "x", "age": "not-a-number"}, enable_validation=False)
        assert person.name == "x"
        assert person.age == "not-a-number"

    def test_is_edit(self, translator):
        with pytest.raises(ValidationError):
            translator.whole({"name": "Gennova"}, is_edit=True)
        assert translator.whole({"theID": 2, "name": "Gennova"}, is_edit=True).theID == 2


class TestPartial:
    """Tests for partial translation."""

    def test_identifier_required(self, translator):
        with pytest.raises(ValidationError):
            translator.partial({"age": 20})

    def test_patch(self, translator):
        person = translator.partial({"theID": 5, "age": 20})
        assert person.theID == 5
        assert person.age == 20
        assert person.name is None


class TestSequences:
    """Lists are translated element-wise, in order."""

    def test_list(self, translator):
        people = translator.whole([{"name": "Gennova"}, {"name": "Matthew"}])
        assert [p.name for p in people] == ["Gennova", "Matthew"]

    def test_tuple(self, translator):
        assert len(translator.whole(({"name": "Gennova"},))) == 1

    def test_callback_continues(self, translator):
        errors = []
        people = translator.whole(
            [{"name": "Gennova"}, {"name": "ab"}, {"name": "Matthew"}],
            error_callback=errors.append,
        )
        assert people[0].name == "Gennova"
        assert people[1] is None
        assert people[2].name == "Matthew"
        assert len(errors) == 1

    def test_first_failure_aborts_batch(self, translator):
        seen = []
        translator.mapper.for_member("name", lambda value, source: seen.append(value) or value)
        with pytest.raises(ValidationError):
            translator.whole([{"name": "Gennova"}, {"name": "ab"}, {"name": "Matthew"}])
        assert seen == ["Gennova"]

    def test_many(self, translator):
        assert translator.whole_many(None) is None
        assert [p.theID for p in translator.partial_many([{"theID": 1}])] == [1]
        with pytest.raises(PreconditionError):
            translator.whole_many({"name": "Gennova"})


class TestNonObjectInput:
    """Absent input is not malformed input."""

    @pytest.mark.parametrize("source", [None, 5, "Gennova", True])
    def test_returns_none(self, translator, source):
        assert translator.whole(source) is None
        assert translator.partial(source) is None


class TestMappingFailures:
    """Mapper failures take the same branch as validation failures."""

    def failing_translator(self):
        mapper = ModelMapper(Person).for_member("age", lambda value, source: int("x"))
        return ModelTranslator(Person, person_validator(), mapper)

    def test_raised(self):
        with pytest.raises(ValueError):
            self.failing_translator().whole({"name": "Gennova", "age": 20})

    def test_callback(self):
        errors = []
        result = self.failing_translator().whole(
            {"name": "Gennova", "age": 20}, error_callback=errors.append
        )
        assert result is None
        assert isinstance(errors[0], ValueError)

    def test_any_transform_error_reaches_callback(self):
        """A lookup failure in one element does not abort the batch."""
        nicknames = {"Gennova": "Gen", "Matthew": "Matt"}
        mapper = ModelMapper(Person).for_member(
            "name", lambda value, source: nicknames[value]
        )
        translator = ModelTranslator(Person, person_validator(), mapper)
        errors = []
        people = translator.whole(
            [{"name": "Gennova"}, {"name": "Unknown"}, {"name": "Matthew"}],
            error_callback=errors.append,
        )
        assert people[0].name == "Gen"
        assert people[1] is None
        assert people[2].name == "Matt"
        assert len(errors) == 1
        assert isinstance(errors[0], KeyError)

    def test_precondition_error_propagates(self):
        def transform(value, source):
            raise PreconditionError("misconfigured transform")

        mapper = ModelMapper(Person).for_member("name", transform)
        translator = ModelTranslator(Person, person_validator(), mapper)
        with pytest.raises(PreconditionError):
            translator.whole({"name": "Gennova"}, error_callback=[].append)


class TestValidationSwitch:
    """Validation is on exactly when a validator exists, unless overridden."""

    def test_default_follows_validator(self, translator):
        assert translator.enable_validation is True
        assert ModelTranslator(Person).enable_validation is False

    def test_no_validator_maps_directly(self):
        person = ModelTranslator(Person).whole({"name": 1})
        assert person.name == 1

    def test_enable_without_validator(self):
        with pytest.raises(PreconditionError):
            ModelTranslator(Person, enable_validation=True)
        with pytest.raises(PreconditionError):
            ModelTranslator(Person).whole({"name": "Gennova"}, enable_validation=True)

    def test_disabling_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="model_translator"):
            translator = ModelTranslator(Person, person_validator(), enable_validation=False)
        assert "Validation is disabled for Person" in caplog.text
        assert translator.whole({"age": "old"}).age == "old"

    def test_unknown_option(self, translator):
        with pytest.raises(PreconditionError):
            translator.whole({"name": "Gennova"}, enable_validaton=False)


class TestTryTranslate:
    """Result-style translation."""

    def test_success(self, translator):
        result = translator.try_whole({"name": "Gennova"})
        assert result.ok
        assert result.unwrap().name == "Gennova"

    def test_failure(self, translator):
        result = translator.try_partial({})
        assert not result.ok
        assert result.value is None
        assert isinstance(result.error, ValidationError)
        assert result.unwrap_or("fallback") == "fallback"
        with pytest.raises(ValidationError):
            result.unwrap()

    def test_callback_not_used(self, translator):
        errors = []
        result = translator.try_whole({"name": "ab"}, error_callback=errors.append)
        assert not result.ok
        assert errors == []

    def test_list(self, translator):
        results = translator.try_whole([{"name": "Gennova"}, {"name": "ab"}])
        assert [r.ok for r in results] == [True, False]

    def test_none(self, translator):
        assert translator.try_whole(None) == TranslationResult.success(None)
