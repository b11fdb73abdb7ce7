"""Installed dependency sources: package metadata followed by each package's code."""

from __future__ import annotations

import logging
from pathlib import Path

from ctxgen.document.models import FileSource, PackageSource, TreeViewConfig
from ctxgen.errors import CompilationCancelled, ConfigurationError, CtxgenError
from ctxgen.fetchers.base import FetchContext, SourceFetcher
from ctxgen.fetchers.file import FileSourceFetcher
from ctxgen.lib.content import ContentBuilder
from ctxgen.lib.packages import PACKAGE_PROVIDERS, PackageInfo, PackageProvider
from ctxgen.modifiers.base import ModifiersApplier
from ctxgen.tree.renderer import FileTreeBuilder

logger = logging.getLogger(__name__)


class PackageSourceFetcher(SourceFetcher):
    kind = "package"
    source_type = PackageSource

    def __init__(
        self,
        context: FetchContext,
        file_fetcher: FileSourceFetcher | None = None,
        providers: dict[str, type[PackageProvider]] | None = None,
    ) -> None:
        super().__init__(context)
        self.file_fetcher = file_fetcher or FileSourceFetcher(context)
        self.providers = providers if providers is not None else PACKAGE_PROVIDERS

    def _provider(self, name: str) -> PackageProvider:
        if name not in self.providers:
            raise ConfigurationError(f"Unknown package provider '{name}'")
        return self.providers[name]()

    def _fetch(self, source: PackageSource, applier: ModifiersApplier) -> str:
        provider = self._provider(source.provider)
        manifest_dir = self.context.resolve(source.manifest_path)
        packages = provider.filter(
            provider.packages(manifest_dir, source.include_dev_dependencies), source.packages
        )
        logger.info("package source: %d %s package(s) selected", len(packages), provider.name)

        builder = ContentBuilder()
        if not packages:
            builder.add_text("No packages found matching the criteria.")
            return builder.build()

        if source.tree_view.enabled:
            tree = FileTreeBuilder().build_tree(
                [f"{p.path}/" for p in packages], str(manifest_dir), source.tree_view
            )
            builder.add_tree_view(tree)

        for package in packages:
            self.context.cancel.check()
            self._package_header(builder, package)
            for directory in package.source_dirs:
                builder.add_text(self._fetch_directory(source, package, directory, applier))
        return builder.build()

    @staticmethod
    def _package_header(builder: ContentBuilder, package: PackageInfo) -> None:
        builder.add_title(f"{package.name} ({package.version})", 2)
        builder.add_description(package.description)
        meta = []
        if package.authors:
            meta.append(f"**Authors:** {package.format_authors()}")
        if package.license:
            meta.append(f"**License:** {', '.join(package.license)}")
        if package.homepage:
            meta.append(f"**Homepage:** {package.homepage}")
        builder.add_text("\n".join(meta))

    def _fetch_directory(
        self,
        source: PackageSource,
        package: PackageInfo,
        directory: str,
        applier: ModifiersApplier,
    ) -> str:
        delegate = FileSource(
            description=f"{package.name} {directory}",
            source_paths=[str((Path(package.path) / directory).resolve())],
            tree_view=TreeViewConfig(enabled=False),
            **source.filters().model_dump(),
        )
        try:
            return self.file_fetcher.fetch(delegate, applier)
        except CompilationCancelled:
            raise
        except (CtxgenError, OSError) as e:
            logger.error("package %s: directory %s failed: %s", package.name, directory, e)
            return f"Error fetching source for {package.name} in directory {directory}: {e}"
