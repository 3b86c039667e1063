"""Tests for the codegen module and the target languages."""

import pytest

from validgen.codegen import CodeGenerator, generate
from validgen.config import GenerationOptions
from validgen.errors import GenerationError, UnsupportedLanguageError
from validgen.models import (
    AllowedValues,
    DataType,
    FieldMetadata,
    GenerationInput,
    MaximumLength,
    Minimum,
    ModelMetadata,
    Pattern,
    TypeKind,
)
from validgen.pipeline import generate_from_document


def _render(spec, language, **options):
    result = generate_from_document(spec, language, GenerationOptions(**options))
    return {a.relative_path: a.content for a in result.artifacts}, result.artifacts


class TestGenerateAll:
    """Artifact set and ordering."""

    def test_csharp_order(self, petstore_spec):
        _, artifacts = _render(petstore_spec, "csharp", namespace="PetStore")
        assert [a.relative_path for a in artifacts] == [
            "PetId.cs", "PetName.cs", "PetAge.cs", "PetType.cs", "Email.cs", "OwnerId.cs",
            "OwnerDisplayName.cs", "PetTagsItem.cs", "PetBornAt.cs",
            "Owner.cs", "Pet.cs", "DTO/Owner.cs", "DTO/Pet.cs",
        ]
        assert artifacts[-1].name == "DTO.Pet"
        assert all(a.target.language == "csharp" for a in artifacts)

    def test_python_package_files_with_namespace(self, petstore_spec):
        files, artifacts = _render(petstore_spec, "python", namespace="petstore")
        assert [a.relative_path for a in artifacts][-2:] == ["__init__.py", "DTO/__init__.py"]
        assert "from .PetId import PetId\n" in files["__init__.py"]
        assert "from .Pet import Pet\n" in files["DTO/__init__.py"]
        assert "PetId" not in files["DTO/__init__.py"]

    def test_python_no_package_files_without_namespace(self, petstore_spec):
        files, _ = _render(petstore_spec, "python")
        assert "__init__.py" not in files
        assert len(files) == 13

    def test_empty_input(self):
        assert CodeGenerator("csharp").generate_all(GenerationInput()) == []

    def test_deterministic(self, petstore_spec):
        first, _ = _render(petstore_spec, "python", namespace="petstore")
        second, _ = _render(petstore_spec, "python", namespace="petstore")
        assert first == second

    def test_paths_colliding_by_case(self):
        generation_input = GenerationInput.of([
            DataType("Code", TypeKind.STRING, (MaximumLength(3),)),
            DataType("CODE", TypeKind.STRING, (MaximumLength(4),)),
        ])
        with pytest.raises(GenerationError, match="would both be written"):
            CodeGenerator("csharp").generate_all(generation_input)

    def test_unsupported_constraint(self):
        flag = DataType("Flag", TypeKind.BOOLEAN, (Pattern("^t"),))
        for language in ("csharp", "python"):
            with pytest.raises(GenerationError) as exc_info:
                CodeGenerator(language).generate_data_type(flag)
            assert exc_info.value.type_name == "Flag"
            assert exc_info.value.target == language

    def test_reference_is_not_a_primitive(self):
        with pytest.raises(GenerationError):
            CodeGenerator("python").generate_data_type(DataType("Owner", TypeKind.OBJECT))

    def test_unknown_language(self):
        with pytest.raises(UnsupportedLanguageError):
            generate(GenerationInput(), "cobol")

    def test_alias(self):
        generation_input = GenerationInput.of([DataType("Code", TypeKind.STRING, (MaximumLength(3),))])
        (artifact,) = generate(generation_input, "CS")
        assert artifact.relative_path == "Code.cs"


class TestCSharpOutput:
    """Spot checks of the generated C#."""

    @pytest.fixture(autouse=True)
    def _files(self, petstore_spec):
        self.files, _ = _render(petstore_spec, "csharp", namespace="PetStore")

    def test_primitive_declaration(self):
        content = self.files["PetId.cs"]
        assert "using Validgen.Runtime;" in content
        assert "using System.Text.RegularExpressions;" in content
        assert "namespace PetStore\n{" in content
        assert "    [Validated]\n    public readonly record struct PetId\n" in content
        assert 'new(@"^PET-[0-9]{6}$", RegexOptions.Compiled);' in content
        assert "public static bool TryCreate(string? input, out PetId validated)" in content
        assert "if (input is string raw && Pattern.IsMatch(raw))" in content

    def test_primitive_bounds(self):
        content = self.files["PetAge.cs"]
        assert "private const int Minimum = 0;" in content
        assert "private const int Maximum = 50;" in content
        assert "if (input is int raw && raw >= Minimum && raw <= Maximum)" in content
        assert "public override string ToString() => value.ToString();" in content

    def test_enum(self):
        content = self.files["PetType.cs"]
        assert 'new() { "dog", "cat", "bird" };' in content
        assert "AllowedValues.Contains(raw)" in content

    def test_documentation(self):
        assert "    /// <summary>\n    /// Unique identifier for a pet\n    /// </summary>" in self.files["PetId.cs"]

    def test_model(self):
        content = self.files["Pet.cs"]
        assert "[Validated(typeof(PetStore.DTO.Pet))]" in content
        assert "public sealed record Pet" in content
        assert "public required PetId Id { get; init; }" in content
        assert "public PetAge? Age { get; init; }" in content
        assert "public IReadOnlyList<PetTagsItem>? Tags { get; init; }" in content
        assert "valid &= PetId.TryCreate(dto.Id, out var idItem);" in content
        assert "valid &= Owner.TryCreate(dto.Owner, out owner);" in content
        assert "throw new ValidationException<PetStore.DTO.Pet?, Pet>(dto);" in content
        assert "Age = model.Age?.Value," in content
        assert "Owner = model.Owner is null ? null : Owner.ToDTO(model.Owner)," in content

    def test_dto(self):
        content = self.files["DTO/Pet.cs"]
        assert "namespace PetStore.DTO\n{" in content
        assert "public record Pet" in content
        assert '[JsonPropertyName("bornAt")]' in content
        assert "public DateTime? BornAt { get; init; }" in content
        assert "public List<string?>? Tags { get; init; }" in content
        assert "public Owner? Owner { get; init; }" in content

    def test_balanced_braces(self):
        for path, content in self.files.items():
            assert content.count("{") == content.count("}"), path


class TestOptions:

    def test_no_documentation(self, petstore_spec):
        files, _ = _render(petstore_spec, "csharp", include_documentation=False)
        assert all("/// " not in content for content in files.values())
        py_files, _ = _render(petstore_spec, "python", include_documentation=False)
        assert '"""Unique identifier' not in py_files["PetId.py"]

    def test_documentation_in_python(self, petstore_spec):
        files, _ = _render(petstore_spec, "python")
        assert '    """Unique identifier for a pet"""' in files["PetId.py"]

    def test_no_annotations(self, petstore_spec):
        files, _ = _render(petstore_spec, "csharp", include_validation_annotations=False)
        assert "[Validated" not in files["PetId.cs"]
        assert "[Pattern]" not in files["PetId.cs"]
        py_files, _ = _render(petstore_spec, "python", include_validation_annotations=False)
        assert "@validated" not in py_files["PetId.py"]
        assert "validated" not in py_files["PetId.py"].split("class PetId")[0]

    def test_file_header(self, petstore_spec):
        files, _ = _render(petstore_spec, "python", file_header="Generated by validgen: {name}")
        assert files["PetId.py"].startswith("# Generated by validgen: PetId\n\n")
        cs_files, _ = _render(petstore_spec, "csharp", file_header="Do not edit\n{language}")
        assert cs_files["Pet.cs"].startswith("// Do not edit\n// csharp\n\nusing ")

    def test_additional_imports(self, petstore_spec):
        files, _ = _render(petstore_spec, "csharp", additional_imports=["System.ComponentModel"])
        assert "using System.ComponentModel;" in files["PetId.cs"]

    def test_csharp_without_nullable_markers(self, petstore_spec):
        files, _ = _render(petstore_spec, "csharp", use_nullable_markers=False)
        content = files["DTO/Pet.cs"]
        assert "public string Name { get; init; }" in content
        assert "public int? Age { get; init; }" in content
        assert "public List<string> Tags { get; init; }" in content

    def test_csharp_without_namespace(self, petstore_spec):
        files, _ = _render(petstore_spec, "csharp")
        assert "namespace" not in files["PetId.cs"]
        assert files["PetId.cs"].count("\n[Validated]\npublic readonly record struct PetId\n") == 1
        assert "namespace DTO\n" in files["DTO/Pet.cs"]
        assert "[Validated(typeof(DTO.Pet))]" in files["Pet.cs"]


class TestPythonOutput:

    def test_primitive_constants(self, petstore_spec):
        files, _ = _render(petstore_spec, "python")
        content = files["PetId.py"]
        assert "_PATTERN = re.compile('^PET-[0-9]{6}$')" in content
        assert "from validgen.runtime import ValidationError, validated\n" in content

    def test_decimal_bounds(self):
        price = DataType("Price", TypeKind.DECIMAL, (Minimum(0),))
        content = CodeGenerator("python").generate_data_type(price).content
        assert "from decimal import Decimal" in content
        assert "value >= Decimal('0')" in content

    def test_decimal_fractional_bound_is_exact(self):
        price = DataType("Price", TypeKind.DECIMAL, (Minimum(0.1), AllowedValues((0.1, 2.5))))
        content = CodeGenerator("python").generate_data_type(price).content
        assert "value >= Decimal('0.1')" in content
        assert "value in (Decimal('0.1'), Decimal('2.5'))" in content

    def test_model_imports_without_namespace(self, petstore_spec):
        files, _ = _render(petstore_spec, "python")
        content = files["Pet.py"]
        assert "    from DTO.Pet import Pet as PetDTO\n" in content
        assert "        from PetId import PetId\n" in content

    def test_model_imports_with_namespace(self, petstore_spec):
        files, _ = _render(petstore_spec, "python", namespace="petstore")
        content = files["Pet.py"]
        assert "        from petstore.Owner import Owner\n" in content
        assert "        from petstore.DTO.Pet import Pet as PetDTO\n" in content

    def test_dto_wire_names(self, petstore_spec):
        files, _ = _render(petstore_spec, "python", namespace="petstore")
        content = files["DTO/Pet.py"]
        assert "    born_at: datetime | None = None\n" in content
        assert "born_at=from_wire(data.get('bornAt'), is_datetime=True)," in content
        assert "owner=from_wire(data.get('owner'), dto=Owner)," in content
        assert "'bornAt': to_wire(self.born_at)," in content

    def test_single_field_model(self):
        code = DataType("Code", TypeKind.STRING, (MaximumLength(3),))
        model = ModelMetadata("Box", (FieldMetadata("code", code),))
        content = CodeGenerator("python").generate_model(model).content
        assert "__slots__ = ('code', )" in content
        compile(content, "Box.py", "exec")
