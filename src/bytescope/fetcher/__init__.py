from bytescope.fetcher.code_fetcher import CodeFetcher, FetchReport

__all__ = ["CodeFetcher", "FetchReport"]
