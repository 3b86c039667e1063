"""Tests for the extractor module."""

from validgen.extractor import extract_data_types_and_models, extract_metadata
from validgen.models import (
    AllowedValues,
    Maximum,
    MaximumLength,
    Minimum,
    MinimumLength,
    ModelKind,
    Pattern,
    TypeKind,
)


class TestPetstoreExtraction:
    """Extraction of the sample petstore specification."""

    def test_data_type_order(self, petstore_extraction):
        names = [dt.name for dt in petstore_extraction.data_types]
        assert names == [
            "PetId", "PetName", "PetAge", "PetType", "Email", "OwnerId",
            "OwnerDisplayName", "PetTagsItem", "PetBornAt",
        ]

    def test_model_order(self, petstore_extraction):
        assert [m.name for m in petstore_extraction.models] == ["Owner", "Pet"]

    def test_pet_id(self, petstore_extraction):
        pet_id = petstore_extraction.data_types[0]
        assert pet_id.kind is TypeKind.STRING
        assert pet_id.constraints == (Pattern("^PET-[0-9]{6}$"),)
        assert pet_id.description == "Unique identifier for a pet"

    def test_pet_name(self, petstore_extraction):
        pet_name = petstore_extraction.data_types[1]
        assert pet_name.constraints == (MinimumLength(1), MaximumLength(50))

    def test_pet_age(self, petstore_extraction):
        pet_age = petstore_extraction.data_types[2]
        assert pet_age.kind is TypeKind.INT32
        assert pet_age.format == "int32"
        assert pet_age.constraints == (Minimum(0), Maximum(50))

    def test_pet_type_enum(self, petstore_extraction):
        pet_type = petstore_extraction.data_types[3]
        assert pet_type.constraints == (AllowedValues(("dog", "cat", "bird")),)

    def test_pet_fields(self, petstore_extraction):
        pet = petstore_extraction.models[1]
        assert [f.name for f in pet.fields] == [
            "id", "name", "type", "age", "owner", "tags", "bornAt",
        ]
        assert pet.kind is ModelKind.ENTITY
        assert pet.description == "A pet in the store"

    def test_required_fields(self, petstore_extraction):
        pet = petstore_extraction.models[1]
        required = {f.name for f in pet.fields if f.is_required}
        assert required == {"id", "name", "type"}
        assert not pet.get_field("id").is_nullable
        assert pet.get_field("age").is_nullable

    def test_field_shares_named_type(self, petstore_extraction):
        pet = petstore_extraction.models[1]
        assert pet.get_field("id").data_type is petstore_extraction.data_types[0]

    def test_model_reference(self, petstore_extraction):
        owner = petstore_extraction.models[1].get_field("owner")
        assert owner.data_type.name == "Owner"
        assert owner.data_type.is_reference

    def test_collection_field(self, petstore_extraction):
        tags = petstore_extraction.models[1].get_field("tags")
        assert tags.is_collection
        assert tags.collection_element_type is tags.data_type
        assert tags.data_type.name == "PetTagsItem"
        assert tags.data_type.constraints == (MaximumLength(20),)

    def test_datetime_field(self, petstore_extraction):
        born = petstore_extraction.models[1].get_field("bornAt")
        assert born.data_type.kind is TypeKind.DATETIME
        assert born.original_name == "bornAt"

    def test_field_description_falls_back_to_type(self, petstore_extraction):
        pet = petstore_extraction.models[1]
        assert pet.get_field("name").description == "Name of the pet"

    def test_no_warnings(self, petstore_extraction):
        assert petstore_extraction.warnings == ()

    def test_deterministic(self, petstore_spec):
        assert extract_metadata(petstore_spec) == extract_metadata(petstore_spec)


class TestExtractionRules:
    """Classification and failure containment on small documents."""

    def test_single_simple_schema(self, spec_factory):
        spec = spec_factory({"PetId": {"type": "string", "pattern": "^PET-[0-9]{6}$"}})
        result = extract_data_types_and_models(spec)
        assert len(result.data_types) == 1
        assert result.models == ()
        assert result.warnings == ()

    def test_no_schemas(self, spec_factory):
        result = extract_metadata(spec_factory())
        assert result.data_types == ()
        assert result.models == ()

    def test_plain_scalar_skipped_with_warning(self, spec_factory):
        result = extract_metadata(spec_factory({"Note": {"type": "string"}}))
        assert result.data_types == ()
        assert len(result.warnings) == 1
        assert "Note" in result.warnings[0]

    def test_plain_scalar_emitted_when_referenced(self, spec_factory):
        spec = spec_factory({
            "Note": {"type": "string"},
            "Memo": {
                "type": "object",
                "properties": {"note": {"$ref": "#/components/schemas/Note"}},
            },
        })
        result = extract_metadata(spec)
        assert [dt.name for dt in result.data_types] == ["Note"]
        assert result.data_types[0].constraints == ()
        assert [m.name for m in result.models] == ["Memo"]

    def test_unsupported_shape_skipped(self, spec_factory):
        spec = spec_factory({
            "Tags": {"type": "array", "items": {"type": "string"}},
            "Code": {"type": "string", "minLength": 2},
        })
        result = extract_metadata(spec)
        assert [dt.name for dt in result.data_types] == ["Code"]
        assert any("Tags" in w for w in result.warnings)

    def test_broken_reference_contained(self, spec_factory):
        spec = spec_factory({
            "Broken": {
                "type": "object",
                "properties": {"ghost": {"$ref": "#/components/schemas/Missing"}},
            },
            "Good": {"type": "string", "maxLength": 3},
        })
        result = extract_metadata(spec)
        assert [dt.name for dt in result.data_types] == ["Good"]
        assert result.models == ()
        assert any(w.startswith("Failed to extract schema 'Broken'") for w in result.warnings)

    def test_failed_model_commits_no_inline_types(self, spec_factory):
        spec = spec_factory({
            "Broken": {
                "type": "object",
                "properties": {
                    "code": {"type": "string", "minLength": 1},
                    "items": {"type": "array"},
                },
            },
        })
        result = extract_metadata(spec)
        assert result.data_types == ()
        assert result.models == ()

    def test_free_form_property_skipped(self, spec_factory):
        spec = spec_factory({
            "Bag": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "extra": {"type": "object", "additionalProperties": True},
                },
            },
        })
        result = extract_metadata(spec)
        assert [f.name for f in result.models[0].fields] == ["name"]
        assert any("Bag.extra" in w for w in result.warnings)

    def test_all_of_model(self, spec_factory):
        spec = spec_factory({
            "Base": {
                "type": "object",
                "required": ["id"],
                "properties": {"id": {"type": "string", "minLength": 1}},
            },
            "CreatePetRequest": {
                "allOf": [
                    {"$ref": "#/components/schemas/Base"},
                    {"type": "object", "properties": {"name": {"type": "string"}}},
                ],
            },
        })
        result = extract_metadata(spec)
        request = result.models[1]
        assert [f.name for f in request.fields] == ["id", "name"]
        assert request.get_field("id").is_required
        assert request.kind is ModelKind.REQUEST

    def test_nullable_required_field(self, spec_factory):
        spec = spec_factory({
            "Thing": {
                "type": "object",
                "required": ["label"],
                "properties": {"label": {"type": "string", "nullable": True}},
            },
        })
        label = extract_metadata(spec).models[0].fields[0]
        assert label.is_required and label.is_nullable

    def test_inline_name_avoids_named_schema(self, spec_factory):
        spec = spec_factory({
            "Pet": {
                "type": "object",
                "properties": {"name": {"type": "string", "maxLength": 5}},
            },
            "PetName": {"type": "string", "minLength": 1},
        })
        result = extract_metadata(spec)
        assert [dt.name for dt in result.data_types] == ["PetName2", "PetName"]

    def test_inline_object_becomes_model(self, spec_factory):
        spec = spec_factory({
            "Order": {
                "type": "object",
                "properties": {
                    "address": {
                        "type": "object",
                        "properties": {"city": {"type": "string", "minLength": 1}},
                    },
                },
            },
        })
        result = extract_metadata(spec)
        assert [m.name for m in result.models] == ["OrderAddress", "Order"]
        assert result.models[1].fields[0].data_type.name == "OrderAddress"

    def test_array_reference(self, spec_factory):
        spec = spec_factory({
            "Code": {"type": "string", "pattern": "^[A-Z]{3}$"},
            "Codes": {"type": "array", "items": {"$ref": "#/components/schemas/Code"}},
            "Route": {
                "type": "object",
                "properties": {"stops": {"$ref": "#/components/schemas/Codes"}},
            },
        })
        stops = extract_metadata(spec).models[0].fields[0]
        assert stops.is_collection
        assert stops.data_type.name == "Code"

    def test_invalid_pattern_keeps_type(self, spec_factory):
        spec = spec_factory({"Weird": {"type": "string", "pattern": "([", "maxLength": 4}})
        result = extract_metadata(spec)
        assert result.data_types[0].constraints == (MaximumLength(4),)
        assert len(result.warnings) == 1

    def test_reference_to_failed_model_dropped(self, spec_factory):
        spec = spec_factory({
            "Owner": {"type": "object", "properties": {"meta": {"type": "object"}}},
            "Pet": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "owner": {"$ref": "#/components/schemas/Owner"},
                    "previous": {"type": "array", "items": {"$ref": "#/components/schemas/Owner"}},
                },
            },
        })
        result = extract_metadata(spec)
        assert [m.name for m in result.models] == ["Pet"]
        assert [f.name for f in result.models[0].fields] == ["name"]
        assert any("Pet.owner" in w and "'Owner'" in w for w in result.warnings)
        assert any("Pet.previous" in w for w in result.warnings)

    def test_failed_model_cascades(self, spec_factory):
        spec = spec_factory({
            "Leash": {"type": "object", "properties": {"pet": {"$ref": "#/components/schemas/Pet"}}},
            "Pet": {"type": "object", "properties": {"owner": {"$ref": "#/components/schemas/Owner"}}},
            "Owner": {"type": "object", "properties": {"meta": {"type": "object"}}},
            "Tag": {"type": "object", "properties": {"label": {"type": "string", "maxLength": 8}}},
        })
        result = extract_metadata(spec)
        assert [m.name for m in result.models] == ["Tag"]
        failed = [w for w in result.warnings if w.startswith("Failed to extract schema")]
        assert len(failed) == 3

    def test_mutual_references_survive(self, spec_factory):
        spec = spec_factory({
            "Owner": {"type": "object", "properties": {"pet": {"$ref": "#/components/schemas/Pet"}}},
            "Pet": {"type": "object", "properties": {"owner": {"$ref": "#/components/schemas/Owner"}}},
        })
        result = extract_metadata(spec)
        assert [m.name for m in result.models] == ["Owner", "Pet"]
        assert result.warnings == ()

    def test_boolean_property_keys(self):
        from validgen.loader import parse_spec

        spec = parse_spec(
            "openapi: 3.0.3\n"
            "info: {title: Switches, version: '1'}\n"
            "components:\n"
            "  schemas:\n"
            "    Switch:\n"
            "      type: object\n"
            "      required: [on]\n"
            "      properties:\n"
            "        on: {type: boolean}\n"
            "        off: {type: boolean}\n"
        )
        result = extract_metadata(spec)
        (switch,) = result.models
        assert [f.name for f in switch.fields] == ["True", "False"]
        assert switch.fields[0].is_required
        assert [dt.name for dt in result.data_types] == ["SwitchTrue", "SwitchFalse"]

    def test_unexpected_failure_contained(self, spec_factory, monkeypatch):
        import validgen.extractor as extractor_module

        def explode(spec, schema):
            raise RuntimeError("boom")

        monkeypatch.setattr(extractor_module, "object_shape", explode)
        spec = spec_factory({
            "Odd": {"type": "object", "properties": {"size": {"type": "string"}}},
            "Good": {"type": "string", "maxLength": 3},
        })
        result = extract_metadata(spec)
        assert "unexpected RuntimeError: boom" in result.warnings[0]
        assert [dt.name for dt in result.data_types] == ["Good"]
        assert any(w.startswith("Failed to extract schema 'Odd'") for w in result.warnings)

    def test_large_int64_default_kept(self, spec_factory):
        spec = spec_factory({
            "Big": {"type": "integer", "format": "int64", "minimum": 0, "default": 2**60},
            "Small": {"type": "integer", "format": "int32", "minimum": 0, "default": 2**60},
        })
        big, small = extract_metadata(spec).data_types
        assert big.default_value == 2**60
        assert small.default_value is None


class TestServiceMetadata:

    def test_service(self, petstore_extraction):
        service = petstore_extraction.service
        assert service.name == "Pet Store"
        assert service.version == "1.0.0"
        assert len(service.endpoints) == 6
        assert petstore_extraction.endpoints == service.endpoints

    def test_without_endpoints(self, petstore_spec):
        result = extract_metadata(petstore_spec, include_endpoints=False)
        assert result.service is None
        assert result.endpoints == ()
